"""Validated, all-or-nothing changes to a door's connection settings."""

from __future__ import annotations

import logging
import re
from collections.abc import Collection, Mapping
from typing import Any

from pytailwind._constants import MAX_HOST_LENGTH, STORE_CONTROLLER_HOST, STORE_LOCAL_KEY
from pytailwind.exceptions import (
    TailwindConnectivityError,
    TailwindError,
    TailwindUninitializedError,
    TailwindValidationError,
)
from pytailwind.reconciler import DoorReconciler
from pytailwind.state.store import IdentityStore

_logger = logging.getLogger(__name__)

_VALID_HOST_RE = re.compile(r"[A-Za-z0-9._-]+")
_VALID_KEY_RE = re.compile(r"\d{6}")

# Older settings forms name the local key differently.
_LOCAL_KEY_ALIASES = ("localSecret", "sharedSecret")

SUCCESS_MESSAGE = "Settings saved. Connection verified."


def validate_host(host: Any) -> str:
    if not isinstance(host, str) or not host or len(host) > MAX_HOST_LENGTH or not _VALID_HOST_RE.fullmatch(host):
        raise TailwindValidationError("Invalid controller host")
    return host


def validate_local_key(local_key: Any) -> str:
    if not isinstance(local_key, str) or not _VALID_KEY_RE.fullmatch(local_key):
        raise TailwindValidationError("Invalid local key: must be exactly 6 digits")
    return local_key


def _normalize_changes(changed_keys: Collection[str], new_values: Mapping[str, Any]) -> dict[str, Any]:
    """Map changed keys onto store keys, rejecting unknown settings."""
    changes: dict[str, Any] = {}
    for key in changed_keys:
        if key in _LOCAL_KEY_ALIASES:
            changes[STORE_LOCAL_KEY] = new_values.get(key)
        elif key in (STORE_CONTROLLER_HOST, STORE_LOCAL_KEY):
            changes[key] = new_values.get(key)
        else:
            raise TailwindValidationError(f"Unknown setting: {key}")
    return changes


async def _write_all(store: IdentityStore, changes: Mapping[str, Any]) -> None:
    """Write *changes*, restoring earlier keys if a later write fails."""
    previous = store.snapshot()
    written: list[str] = []
    try:
        for key, value in changes.items():
            await store.set_value(key, value)
            written.append(key)
    except Exception:
        for key in reversed(written):
            await store.set_value(key, previous.get(key))
        raise


class SettingsValidator:
    """Applies ``controllerHost`` / ``localKey`` changes for one reconciler.

    A change is committed only after a live status read succeeds against
    the candidate host and key. On any failure nothing is written and the
    live client is kept.
    """

    def __init__(self, reconciler: DoorReconciler) -> None:
        self._reconciler = reconciler

    async def apply(self, changed_keys: Collection[str], new_values: Mapping[str, Any]) -> str:
        identity = self._reconciler.identity
        client = self._reconciler.client
        store = self._reconciler.store
        if identity is None or client is None:
            raise TailwindUninitializedError("Client not initialized")

        changes = _normalize_changes(changed_keys, new_values)
        host_changed = STORE_CONTROLLER_HOST in changes
        key_changed = STORE_LOCAL_KEY in changes

        new_host = validate_host(changes[STORE_CONTROLLER_HOST]) if host_changed else identity.host
        new_key = validate_local_key(changes[STORE_LOCAL_KEY]) if key_changed else identity.local_key

        candidate = self._reconciler.make_client(new_key) if key_changed else client
        try:
            await candidate.get_status(new_host)
        except Exception as exc:
            _logger.warning("Settings trial against %s failed: %s", new_host, exc)
            raise TailwindConnectivityError(
                "Could not connect to controller with new settings",
                host=new_host,
            ) from exc

        # The reconciler may have been stopped or rebound while the trial ran.
        if not self._reconciler.is_running or self._reconciler.identity is not identity:
            raise TailwindError("Door was removed or reconfigured while verifying settings")

        self._reconciler.rebind(
            identity.model_copy(update={"host": new_host, "local_key": new_key}),
            candidate,
        )
        if store is not None:
            committed = {STORE_CONTROLLER_HOST: new_host} if host_changed else {}
            if key_changed:
                committed[STORE_LOCAL_KEY] = new_key
            try:
                await _write_all(store, committed)
            except Exception:
                if self._reconciler.is_running:
                    self._reconciler.rebind(identity, client)
                raise
        _logger.info("Controller settings updated (host=%s, key changed=%s)", new_host, key_changed)

        self._reconciler.schedule_registration("Failed to re-register notifications after settings change")
        return SUCCESS_MESSAGE
