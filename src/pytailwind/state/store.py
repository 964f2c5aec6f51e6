"""Key-value store for committed controller identity fields.

The host platform persists these values; the library reads them at startup
and writes them only after a successful settings trial.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class IdentityStore(Protocol):
    """Structural interface over the host's per-door persistent store."""

    def snapshot(self) -> Mapping[str, Any]: ...

    async def set_value(self, key: str, value: Any) -> None: ...


class MemoryIdentityStore:
    """Dict-backed :class:`IdentityStore` for tests and standalone use."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def snapshot(self) -> dict[str, Any]:
        return dict(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    async def set_value(self, key: str, value: Any) -> None:
        self._values[key] = value
