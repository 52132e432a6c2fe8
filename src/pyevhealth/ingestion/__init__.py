"""Ingestion layer.

This package turns whatever the remote API returned into typed,
defaulted snapshots. Nothing downstream of it ever sees a missing field.
"""

__all__: list[str] = []
