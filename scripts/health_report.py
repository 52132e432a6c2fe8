#!/usr/bin/env python3
"""Command-line battery health report.

Access token and timing settings come from ``EVHEALTH_*`` environment
variables (see :meth:`pyevhealth.HealthConfig.from_env`).

Examples:
    python scripts/health_report.py devices
    python scripts/health_report.py assess 1492931337156789 --no-wake
    python scripts/health_report.py compare 1492931337156789 --seed 7
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyevhealth import (  # noqa: E402
    BatteryHealthService,
    ComparisonEngine,
    DeviceNotFoundError,
    EvHealthError,
    FleetClient,
    HealthConfig,
)
from pyevhealth.models import DeviceListEntry  # noqa: E402
from pyevhealth.probe import status_message  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Battery health report for Fleet API vehicles")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("devices", help="List vehicles and their reachability")

    assess = sub.add_parser("assess", help="Assess battery health of one vehicle")
    assess.add_argument("device_id", help="Vehicle id or VIN")
    assess.add_argument("--no-wake", action="store_true", help="Do not wake a sleeping vehicle")

    compare = sub.add_parser("compare", help="Compare both health algorithms")
    compare.add_argument("device_id", help="Vehicle id or VIN")
    compare.add_argument("--seed", type=int, default=None, help="Seed for synthesized charge history")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    overrides = {"synthetic_seed": args.seed} if getattr(args, "seed", None) is not None else {}
    config = HealthConfig.from_env(**overrides).validate()

    async with FleetClient(config) as client:
        if args.command == "devices":
            for item in await client.list_devices():
                entry = item if isinstance(item, DeviceListEntry) else DeviceListEntry.model_validate(item)
                print(f"{entry.id}\t{entry.display_name or '-'}\t{status_message(entry.to_status())}")
            return 0

        if args.command == "assess":
            service = BatteryHealthService(client, config)
            report = await service.assess(
                args.device_id,
                attempt_wake=not args.no_wake,
                on_status=lambda message: print(f"... {message}", file=sys.stderr),
            )
            print(report.model_dump_json(indent=2))
            return 0 if report.assessment is not None else 2

        engine = ComparisonEngine(client, config)
        result = await engine.compare(args.device_id)
        print(result.model_dump_json(indent=2))
        return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except DeviceNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 3
    except EvHealthError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
