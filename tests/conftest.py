from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from pytailwind.exceptions import TailwindConnectivityError
from pytailwind.state.events import DoorTrigger


def _status_payload(*statuses: str | None, dev_id: str = "tw_abc123", disabled: tuple[int, ...] = ()) -> dict[str, Any]:
    """``dev_st`` body with one entry per given status (``None`` omits the door)."""
    data = {
        f"door{index + 1}": {
            "index": index,
            "status": status,
            "lockup": 0,
            "disabled": 1 if index in disabled else 0,
        }
        for index, status in enumerate(statuses)
        if status is not None
    }
    return {
        "result": "OK",
        "product": "iQ3",
        "dev_id": dev_id,
        "proto_ver": "0.1",
        "door_num": len(statuses),
        "fw_ver": "10.10",
        "data": data,
    }


class FakeTransport:
    """In-memory controller implementing the ``Transport`` protocol."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, str], dict[str, Any]]] = []
        self.status_responses: deque[dict[str, Any] | Exception] = deque()
        self.default_status: dict[str, Any] | Exception = _status_payload("close")
        self.set_response: dict[str, Any] | Exception = {"result": "OK"}
        self.unreachable_hosts: set[str] = set()
        self.gate: asyncio.Event | None = None

    async def post_json(self, host: str, headers: Mapping[str, str], body: Mapping[str, Any]) -> dict[str, Any]:
        self.calls.append((host, dict(headers), dict(body)))
        if self.gate is not None:
            await self.gate.wait()
        if host in self.unreachable_hosts:
            raise TailwindConnectivityError(f"Request to {host} failed", host=host)

        response: dict[str, Any] | Exception
        if body["data"]["name"] == "dev_st":
            response = self.status_responses.popleft() if self.status_responses else self.default_status
        else:
            response = self.set_response
        if isinstance(response, Exception):
            raise response
        return response

    def calls_named(self, name: str) -> list[tuple[str, dict[str, str], dict[str, Any]]]:
        return [call for call in self.calls if call[2]["data"]["name"] == name]


class FakeEntity:
    """Records everything a reconciler reports to the host.

    Setting ``closed_gate`` makes ``set_closed`` wait on it after recording.
    """

    def __init__(self) -> None:
        self.closed_values: list[bool] = []
        self.available: bool | None = None
        self.unavailable_reasons: list[str] = []
        self.triggers: list[DoorTrigger] = []
        self.history: list[str] = []
        self.closed_gate: asyncio.Event | None = None

    async def set_closed(self, closed: bool) -> None:
        self.history.append(f"closed={closed}")
        if self.closed_gate is not None:
            await self.closed_gate.wait()
        self.closed_values.append(closed)

    async def set_available(self) -> None:
        self.history.append("available")
        self.available = True

    async def set_unavailable(self, reason: str) -> None:
        self.history.append("unavailable")
        self.available = False
        self.unavailable_reasons.append(reason)

    async def fire_trigger(self, trigger: DoorTrigger) -> None:
        self.history.append(f"trigger={trigger}")
        self.triggers.append(trigger)


@pytest.fixture
def status_payload() -> Callable[..., dict[str, Any]]:
    return _status_payload


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def entity() -> FakeEntity:
    return FakeEntity()
