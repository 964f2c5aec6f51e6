#!/usr/bin/env python3
"""Dump a controller's status and the doors pairing would offer.

Usage
-----
::

    python scripts/dump_status.py --host tailwind-abc.local --key 123456
    python scripts/dump_status.py --host 192.168.1.40 --key 123456 --json

The local key may also be taken from ``TAILWIND_LOCAL_KEY``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pytailwind import TailwindClient, TailwindConfig, TailwindError, list_doors  # noqa: E402


async def main() -> int:
    parser = argparse.ArgumentParser(description="Dump Tailwind controller status for debugging.")
    parser.add_argument("--host", required=True, help="Controller hostname or IP address")
    parser.add_argument("--key", default=os.environ.get("TAILWIND_LOCAL_KEY"), help="6-digit local control key")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if not args.key:
        parser.error("--key or TAILWIND_LOCAL_KEY is required")

    async with TailwindClient(args.key, config=TailwindConfig.from_env()) as client:
        try:
            status = await client.get_status(args.host)
            doors = await list_doors(client, args.host)
        except TailwindError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1

    if args.json_mode:
        print(
            json.dumps(
                {"status": status.raw, "doors": [door.model_dump(exclude={"local_key"}) for door in doors]},
                indent=2,
            )
        )
        return 0

    print(f"device   : {status.dev_id} (fw {status.fw_ver}, proto {status.proto_ver})")
    print(f"doors    : {status.door_num}")
    for key, door in sorted(status.data.items()):
        flags = [flag for flag, on in (("locked", door.is_locked), ("disabled", door.is_disabled)) if on]
        print(f"  {key}: {door.status}{' [' + ', '.join(flags) + ']' if flags else ''}")
    print("pairable :")
    for door in doors:
        print(f"  {door.id} -> {door.name} (index {door.door_index})")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
