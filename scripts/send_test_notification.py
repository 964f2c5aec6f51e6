#!/usr/bin/env python3
"""Send a simulated controller push notification to a pytailwind ingress.

Builds the body a controller would POST when a door event occurs and sends
it to ``{ingress-url}{path}?host=<controller host>``.

Usage
-----
::

    python scripts/send_test_notification.py --ingress-url http://192.168.1.50:8080 \\
        --host tailwind-abc.local --event open --door 0
    python scripts/send_test_notification.py --ingress-url http://192.168.1.50:8080 \\
        --host tailwind-abc.local --event reboot
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import aiohttp

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pytailwind.models.status import NotifyEvent  # noqa: E402
from pytailwind.reconciler import build_callback_url  # noqa: E402

EVENTS: tuple[str, ...] = tuple(event.value for event in NotifyEvent if event is not NotifyEvent.UNKNOWN)


def build_payload(*, event: str, door: int, dev_id: str, status: str | None) -> dict[str, Any]:
    """Status body with every door up to *door* closed except *door* itself."""
    door_status = status or ("close" if event == "close" else "open")
    doors = {
        f"door{index + 1}": {
            "index": index,
            "status": door_status if index == door else "close",
            "lockup": 0,
            "disabled": 0,
        }
        for index in range(max(door, 0) + 1)
    }
    return {
        "result": "OK",
        "dev_id": dev_id,
        "door_num": len(doors),
        "data": doors,
        "notify": {"door_idx": door, "event": event},
    }


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a test push notification to a pytailwind ingress.")
    parser.add_argument("--ingress-url", required=True, help="Ingress base URL, e.g. http://192.168.1.50:8080")
    parser.add_argument("--host", required=True, help="Controller hostname used for routing, e.g. tailwind-abc.local")
    parser.add_argument("--event", choices=EVENTS, default="open", help="Event type (default: open)")
    parser.add_argument("--door", type=int, default=0, help="Door index, 0-based (default: 0)")
    parser.add_argument("--dev-id", default="test_controller", help="Controller device id in the payload")
    parser.add_argument("--status", choices=("open", "close"), help="Override door status (default: matches event)")
    parser.add_argument("--path", default="/notification", help="Ingress notification path")
    return parser.parse_args()


async def main() -> int:
    args = _parse_args()
    payload = build_payload(event=args.event, door=args.door, dev_id=args.dev_id, status=args.status)
    url = build_callback_url(args.ingress_url, args.path, args.host)

    print(f"Sending {args.event} notification for door {args.door} to {url}")
    print("Payload:", json.dumps(payload, indent=2))

    try:
        async with aiohttp.ClientSession() as session, session.post(url, json=payload) as resp:
            text = await resp.text()
    except aiohttp.ClientError as exc:
        print(f"Error sending notification: {exc}", file=sys.stderr)
        return 1

    if resp.status >= 400:
        print(f"Failed ({resp.status}): {text}", file=sys.stderr)
        return 1
    print(f"Success ({resp.status}): {text}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
