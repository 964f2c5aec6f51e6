"""Controller identity model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pytailwind._constants import (
    LEGACY_HOST_KEYS,
    STORE_CONTROLLER_HOST,
    STORE_DISCOVERY_ID,
    STORE_LOCAL_KEY,
)


class ControllerIdentity(BaseModel):
    """How to reach one controller.

    ``host`` and ``local_key`` change only through
    :class:`pytailwind.settings.SettingsValidator`; ``discovery_id`` is set
    at pairing time and never updated afterwards.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    host: str
    local_key: str = Field(repr=False)
    discovery_id: str | None = None

    @classmethod
    def from_store(cls, store: Mapping[str, Any]) -> ControllerIdentity:
        """Build an identity from committed store values.

        Older releases stored ``controllerHostname`` or ``controllerIp``
        instead of ``controllerHost``; those are read in that order.
        """
        host = store.get(STORE_CONTROLLER_HOST)
        if not host:
            host = next((store[key] for key in LEGACY_HOST_KEYS if store.get(key)), "")
        discovery_id = store.get(STORE_DISCOVERY_ID)
        return cls(
            host=str(host),
            local_key=str(store.get(STORE_LOCAL_KEY) or ""),
            discovery_id=str(discovery_id) if discovery_id else None,
        )
