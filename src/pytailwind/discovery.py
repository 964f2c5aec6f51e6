"""Matching controllers against discovery (mDNS) probe results.

Discovery itself is done by the host; this module only reads its results.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from pytailwind.models.identity import ControllerIdentity

_LOCAL_SUFFIX_RE = re.compile(r"\.local\.?$")


class DiscoveryResult(BaseModel):
    """One entry of the host's discovery cache."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = ""
    address: str | None = None
    host: str | None = None
    txt: dict[str, str] = Field(default_factory=dict)


@dataclass(frozen=True)
class ControllerInfo:
    """A controller offered for pairing."""

    name: str
    host: str
    discovery_id: str


def strip_local(hostname: str) -> str:
    return _LOCAL_SUFFIX_RE.sub("", hostname)


def normalize_hostname(hostname: str) -> str:
    """Canonical ``name.local`` form, with or without a trailing dot on input."""
    return f"{strip_local(hostname)}.local"


def matches(identity: ControllerIdentity, probe: DiscoveryResult) -> bool:
    """Whether *probe* describes the controller *identity* points at.

    The discovery id wins when stored; otherwise both hostnames are
    compared in ``name.local`` form.
    """
    if identity.discovery_id and probe.id == identity.discovery_id:
        return True
    if not identity.host or not probe.host:
        return False
    return normalize_hostname(identity.host) == normalize_hostname(probe.host)


def controllers_from_results(results: Iterable[DiscoveryResult]) -> list[ControllerInfo]:
    """Controllers to offer for pairing, preferring ``.local`` names over addresses."""
    controllers: list[ControllerInfo] = []
    for result in results:
        host = normalize_hostname(result.host) if result.host else result.address
        if not host:
            continue
        name = strip_local(result.host) if result.host else (result.address or result.id)
        controllers.append(ControllerInfo(name=name, host=host, discovery_id=result.id))
    return controllers
