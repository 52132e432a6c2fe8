"""Internal Fleet API endpoint helpers."""
