from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pytailwind.client import TailwindClient
from pytailwind.config import TailwindConfig
from pytailwind.exceptions import TailwindApiError, TailwindConnectivityError, TailwindUninitializedError

if TYPE_CHECKING:
    from conftest import FakeTransport


def _client(transport: FakeTransport, delays: list[float] | None = None) -> TailwindClient:
    client = TailwindClient("123456", transport=transport)

    async def _fake_sleep(delay: float) -> None:
        if delays is not None:
            delays.append(delay)

    client._sleep = _fake_sleep  # type: ignore[attr-defined]
    return client


@pytest.mark.asyncio
async def test_status_read_envelope_omits_product(transport: FakeTransport) -> None:
    status = await _client(transport).get_status("tailwind-abc.local")

    host, headers, body = transport.calls[0]
    assert host == "tailwind-abc.local"
    assert headers == {"Content-Type": "application/json", "TOKEN": "123456"}
    assert body == {"version": "0.1", "data": {"type": "get", "name": "dev_st"}}
    assert status.dev_id == "tw_abc123"
    door = status.door(0)
    assert door is not None and door.is_closed


@pytest.mark.asyncio
async def test_mutating_commands_carry_product_and_version(transport: FakeTransport) -> None:
    client = _client(transport)

    await client.control_door("h", 1, "open")
    await client.register_callback("h", "http://10.0.0.2:8080/notification?host=h")
    await client.unregister_callback("h")

    bodies = [call[2] for call in transport.calls]
    assert all(body["version"] == "0.1" for body in bodies)
    assert all(body["product"] == "iQ3" for body in bodies)
    assert bodies[0]["data"] == {"type": "set", "name": "door_op", "value": {"door_idx": 1, "cmd": "open"}}
    assert bodies[1]["data"]["value"] == {
        "enable": 1,
        "proto": "http",
        "url": "http://10.0.0.2:8080/notification?host=h",
    }
    assert bodies[2]["data"]["value"] == {"enable": 0}


@pytest.mark.asyncio
async def test_transport_failure_retries_three_times_with_backoff(transport: FakeTransport) -> None:
    errors = [TailwindConnectivityError(f"boom {n}", host="h") for n in range(3)]
    transport.status_responses.extend(errors)
    delays: list[float] = []

    with pytest.raises(TailwindConnectivityError) as exc_info:
        await _client(transport, delays).get_status("h")

    assert len(transport.calls) == 3
    assert delays == [1.0, 2.0]
    assert exc_info.value is errors[-1]


@pytest.mark.asyncio
async def test_fail_result_raises_api_error_with_info(transport: FakeTransport) -> None:
    transport.set_response = {"result": "Fail", "info": "token mismatch"}

    with pytest.raises(TailwindApiError, match="token mismatch") as exc_info:
        await _client(transport).control_door("h", 0, "close")

    assert exc_info.value.info == "token mismatch"
    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_fail_result_without_info_uses_generic_message(transport: FakeTransport) -> None:
    transport.set_response = {"result": "Fail"}

    with pytest.raises(TailwindApiError, match="Unknown API error"):
        await _client(transport).register_callback("h", "http://x/notification")


@pytest.mark.asyncio
async def test_recovers_after_transient_failure(transport: FakeTransport, status_payload) -> None:
    transport.status_responses.extend([TailwindConnectivityError("flaky", host="h"), status_payload("open")])
    delays: list[float] = []

    status = await _client(transport, delays).get_status("h")

    door = status.door(0)
    assert door is not None and not door.is_closed
    assert delays == [1.0]


@pytest.mark.asyncio
async def test_retry_policy_follows_config(transport: FakeTransport) -> None:
    transport.default_status = TailwindConnectivityError("down", host="h")
    client = TailwindClient("123456", transport=transport, config=TailwindConfig(max_attempts=4, retry_delay=0.5))
    delays: list[float] = []

    async def _fake_sleep(delay: float) -> None:
        delays.append(delay)

    client._sleep = _fake_sleep  # type: ignore[attr-defined]

    with pytest.raises(TailwindConnectivityError):
        await client.get_status("h")

    assert delays == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_unexpected_status_shape_is_connectivity_error(transport: FakeTransport) -> None:
    transport.default_status = {"result": "OK", "door_num": "many"}

    with pytest.raises(TailwindConnectivityError, match="Unexpected status payload"):
        await _client(transport).get_status("h")


@pytest.mark.asyncio
async def test_client_without_transport_is_uninitialized() -> None:
    client = TailwindClient("123456")

    with pytest.raises(TailwindUninitializedError):
        await client.get_status("h")
