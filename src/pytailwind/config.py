"""Client configuration for pytailwind."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pytailwind.exceptions import TailwindConfigError


def _env_number(env: Mapping[str, str], key: str, kind: type) -> Any:
    value = env.get(key)
    if value is None:
        return None
    try:
        return kind(value.strip())
    except ValueError as exc:
        raise TailwindConfigError(f"{key} must be a {kind.__name__}, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class TailwindConfig:
    """Library configuration.

    Parameters
    ----------
    poll_interval : float
        Seconds between status polls of a tracked door.
    max_attempts : int
        Total HTTP attempts per command, including the first one.
    retry_delay : float
        Backoff base in seconds. The wait before retry *n* (0-based) is
        ``retry_delay * 2 ** n``.
    request_timeout : float
        Per-attempt HTTP timeout in seconds.
    callback_base_url : str or None
        Locally reachable base URL of the push ingress (e.g.
        ``"http://192.168.1.50:8080"``). Callback registration is skipped
        while this is ``None``.
    callback_path : str
        Path of the push endpoint under ``callback_base_url``.
    unavailable_reason : str
        Reason reported to the host when a poll fails.
    notification_log_size : int
        Number of received push payloads kept for inspection.
    """

    poll_interval: float = 30.0
    max_attempts: int = 3
    retry_delay: float = 1.0
    request_timeout: float = 10.0
    callback_base_url: str | None = None
    callback_path: str = "/notification"
    unavailable_reason: str = "Cannot reach controller"
    notification_log_size: int = 10

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise TailwindConfigError("max_attempts must be at least 1")
        if self.poll_interval <= 0:
            raise TailwindConfigError("poll_interval must be positive")
        if self.retry_delay < 0:
            raise TailwindConfigError("retry_delay must not be negative")
        if not self.callback_path.startswith("/"):
            raise TailwindConfigError("callback_path must start with '/'")

    @classmethod
    def from_env(cls, **overrides: Any) -> TailwindConfig:
        """Create configuration from ``TAILWIND_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_NUMERIC_MAP = {
            "TAILWIND_POLL_INTERVAL": ("poll_interval", float),
            "TAILWIND_MAX_ATTEMPTS": ("max_attempts", int),
            "TAILWIND_RETRY_DELAY": ("retry_delay", float),
            "TAILWIND_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, kind) in _ENV_NUMERIC_MAP.items():
            value = _env_number(env, env_key, kind)
            if value is not None:
                config_kwargs[field_name] = value

        base_url = env.get("TAILWIND_CALLBACK_BASE_URL")
        if base_url:
            config_kwargs["callback_base_url"] = base_url.rstrip("/")
        callback_path = env.get("TAILWIND_CALLBACK_PATH")
        if callback_path:
            config_kwargs["callback_path"] = callback_path

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
