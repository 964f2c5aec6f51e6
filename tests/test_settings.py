from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio

from pytailwind.config import TailwindConfig
from pytailwind.exceptions import (
    TailwindApiError,
    TailwindConnectivityError,
    TailwindError,
    TailwindUninitializedError,
    TailwindValidationError,
)
from pytailwind.models.identity import ControllerIdentity
from pytailwind.notifications import NotificationRouter
from pytailwind.reconciler import DoorReconciler
from pytailwind.settings import SUCCESS_MESSAGE, SettingsValidator, validate_host, validate_local_key
from pytailwind.state.store import MemoryIdentityStore

if TYPE_CHECKING:
    from conftest import FakeEntity, FakeTransport

HOST = "tailwind-abc.local"
CONFIG = TailwindConfig(retry_delay=0.0, callback_base_url="http://hub.local:8080")


@pytest.fixture
def store() -> MemoryIdentityStore:
    return MemoryIdentityStore({"controllerHost": HOST, "localKey": "123456", "doorIndex": 0})


@pytest_asyncio.fixture
async def reconciler(entity: FakeEntity, transport: FakeTransport, store: MemoryIdentityStore):
    reconciler = DoorReconciler(entity, NotificationRouter(), transport=transport, config=CONFIG, store=store)
    await reconciler.start_from_store()
    await reconciler._drain_background()
    transport.calls.clear()
    yield reconciler
    await reconciler._drain_background()
    reconciler.stop()


@pytest.mark.parametrize("host", ["", "bad host", "a" * 254, "host/path"])
def test_validate_host_rejects(host: str) -> None:
    with pytest.raises(TailwindValidationError, match="Invalid controller host"):
        validate_host(host)


@pytest.mark.parametrize("host", ["10.0.0.5", "tailwind-abc.local", "my_controller"])
def test_validate_host_accepts(host: str) -> None:
    assert validate_host(host) == host


@pytest.mark.parametrize("key", ["12345", "1234567", "abcdef", "", None])
def test_validate_local_key_rejects(key: object) -> None:
    with pytest.raises(TailwindValidationError, match="exactly 6 digits"):
        validate_local_key(key)


@pytest.mark.asyncio
async def test_invalid_values_make_no_network_call(
    reconciler: DoorReconciler, transport: FakeTransport, store: MemoryIdentityStore
) -> None:
    validator = SettingsValidator(reconciler)

    with pytest.raises(TailwindValidationError):
        await validator.apply({"localKey"}, {"localKey": "12345"})
    with pytest.raises(TailwindValidationError):
        await validator.apply({"controllerHost"}, {"controllerHost": "bad host!"})
    with pytest.raises(TailwindValidationError, match="Invalid controller host"):
        await validator.apply({"controllerHost"}, {"controllerHost": ""})

    assert transport.calls == []
    assert store.get("localKey") == "123456"


@pytest.mark.asyncio
async def test_failed_trial_changes_nothing(
    reconciler: DoorReconciler, transport: FakeTransport, store: MemoryIdentityStore
) -> None:
    transport.unreachable_hosts.add("new.local")
    identity = reconciler.identity
    client = reconciler.client

    with pytest.raises(TailwindConnectivityError, match="Could not connect to controller with new settings"):
        await SettingsValidator(reconciler).apply(
            {"controllerHost", "localKey"},
            {"controllerHost": "new.local", "localKey": "654321"},
        )
    await reconciler._drain_background()

    assert store.snapshot() == {"controllerHost": HOST, "localKey": "123456", "doorIndex": 0}
    assert reconciler.identity is identity
    assert reconciler.client is client
    assert transport.calls_named("notify_url") == []


@pytest.mark.asyncio
async def test_key_change_swaps_client_and_persists(
    reconciler: DoorReconciler, transport: FakeTransport, store: MemoryIdentityStore
) -> None:
    old_client = reconciler.client

    message = await SettingsValidator(reconciler).apply({"localKey"}, {"localKey": "654321"})

    assert message == SUCCESS_MESSAGE
    assert store.get("localKey") == "654321"
    assert store.get("controllerHost") == HOST
    assert reconciler.client is not old_client
    assert reconciler.client is not None and reconciler.client.local_key == "654321"
    assert reconciler.identity == ControllerIdentity(host=HOST, local_key="654321")
    trial_host, trial_headers, _ = transport.calls_named("dev_st")[0]
    assert trial_host == HOST
    assert trial_headers["TOKEN"] == "654321"


@pytest.mark.asyncio
async def test_host_change_keeps_client_and_reregisters(
    reconciler: DoorReconciler, transport: FakeTransport, store: MemoryIdentityStore
) -> None:
    old_client = reconciler.client

    await SettingsValidator(reconciler).apply({"controllerHost"}, {"controllerHost": "new.local"})
    await reconciler._drain_background()

    assert store.get("controllerHost") == "new.local"
    assert reconciler.client is old_client
    assert reconciler.identity is not None and reconciler.identity.host == "new.local"
    registrations = transport.calls_named("notify_url")
    assert [call[0] for call in registrations] == ["new.local"]
    assert registrations[0][2]["data"]["value"]["url"].endswith("?host=new.local")


@pytest.mark.asyncio
async def test_combined_change_trials_new_host_with_new_key(
    reconciler: DoorReconciler, transport: FakeTransport, store: MemoryIdentityStore
) -> None:
    await SettingsValidator(reconciler).apply(
        {"controllerHost", "localKey"},
        {"controllerHost": "10.0.0.9", "localKey": "000111"},
    )

    trial_host, trial_headers, _ = transport.calls_named("dev_st")[0]
    assert (trial_host, trial_headers["TOKEN"]) == ("10.0.0.9", "000111")
    assert store.get("controllerHost") == "10.0.0.9"
    assert store.get("localKey") == "000111"


@pytest.mark.asyncio
async def test_registration_failure_does_not_fail_apply(
    reconciler: DoorReconciler, transport: FakeTransport, store: MemoryIdentityStore
) -> None:
    transport.set_response = TailwindApiError("rejected", info="rejected", host="new.local")

    message = await SettingsValidator(reconciler).apply({"controllerHost"}, {"controllerHost": "new.local"})
    await reconciler._drain_background()

    assert message == SUCCESS_MESSAGE
    assert store.get("controllerHost") == "new.local"


@pytest.mark.asyncio
async def test_unchanged_fields_are_not_validated(reconciler: DoorReconciler, store: MemoryIdentityStore) -> None:
    message = await SettingsValidator(reconciler).apply(set(), {"localKey": "bad"})

    assert message == SUCCESS_MESSAGE
    assert store.get("localKey") == "123456"


@pytest.mark.asyncio
async def test_apply_before_start_is_rejected(entity: FakeEntity, transport: FakeTransport) -> None:
    reconciler = DoorReconciler(entity, NotificationRouter(), transport=transport, config=CONFIG)

    with pytest.raises(TailwindUninitializedError):
        await SettingsValidator(reconciler).apply({"localKey"}, {"localKey": "654321"})


@pytest.mark.asyncio
@pytest.mark.parametrize("alias", ["localSecret", "sharedSecret"])
async def test_local_key_aliases_are_validated(
    reconciler: DoorReconciler, transport: FakeTransport, store: MemoryIdentityStore, alias: str
) -> None:
    validator = SettingsValidator(reconciler)

    with pytest.raises(TailwindValidationError, match="must be exactly 6 digits"):
        await validator.apply({alias}, {alias: "12345"})
    assert transport.calls == []

    await validator.apply({alias}, {alias: "654321"})
    assert store.get("localKey") == "654321"
    assert alias not in store.snapshot()


@pytest.mark.asyncio
async def test_unknown_setting_is_rejected(reconciler: DoorReconciler, transport: FakeTransport) -> None:
    with pytest.raises(TailwindValidationError, match="Unknown setting: pollSeconds"):
        await SettingsValidator(reconciler).apply({"pollSeconds"}, {"pollSeconds": 5})

    assert transport.calls == []


@pytest.mark.asyncio
async def test_stop_during_trial_writes_nothing(
    reconciler: DoorReconciler, transport: FakeTransport, store: MemoryIdentityStore
) -> None:
    transport.gate = asyncio.Event()

    task = asyncio.create_task(
        SettingsValidator(reconciler).apply({"controllerHost"}, {"controllerHost": "new.local"})
    )
    while not transport.calls:
        await asyncio.sleep(0)
    reconciler.stop()
    transport.gate.set()

    with pytest.raises(TailwindError, match="removed or reconfigured"):
        await task
    assert store.get("controllerHost") == HOST
    assert transport.calls_named("notify_url") == []


class _FailingKeyStore(MemoryIdentityStore):
    async def set_value(self, key: str, value: object) -> None:
        if key == "localKey":
            raise OSError("store is read-only")
        await super().set_value(key, value)


@pytest.mark.asyncio
async def test_failed_store_write_rolls_back(entity: FakeEntity, transport: FakeTransport) -> None:
    store = _FailingKeyStore({"controllerHost": HOST, "localKey": "123456", "doorIndex": 0})
    reconciler = DoorReconciler(entity, NotificationRouter(), transport=transport, config=CONFIG, store=store)
    await reconciler.start_from_store()
    identity = reconciler.identity
    client = reconciler.client

    with pytest.raises(OSError):
        await SettingsValidator(reconciler).apply(
            ["controllerHost", "localKey"],
            {"controllerHost": "new.local", "localKey": "654321"},
        )

    assert store.snapshot() == {"controllerHost": HOST, "localKey": "123456", "doorIndex": 0}
    assert reconciler.identity is identity
    assert reconciler.client is client
    await reconciler._drain_background()
    reconciler.stop()
