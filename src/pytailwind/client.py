"""Async command client for the Tailwind local control API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp
from pydantic import ValidationError

from pytailwind._constants import RESULT_FAIL, TOKEN_HEADER
from pytailwind._transport import HttpTransport, Transport
from pytailwind.config import TailwindConfig
from pytailwind.exceptions import (
    TailwindApiError,
    TailwindConnectivityError,
    TailwindUninitializedError,
)
from pytailwind.models.command import Command, DoorCommand
from pytailwind.models.status import CommandResult, ControllerStatus

_logger = logging.getLogger(__name__)


class TailwindClient:
    """Sends versioned commands to a controller, authenticated by its local key.

    The client is bound to a key, not to a host: every call names the host
    it talks to, so the same instance can probe a candidate address.

    Usage::

        async with TailwindClient("123456") as client:
            status = await client.get_status("tailwind-abc.local")

    When a ``transport`` (or an aiohttp ``session``) is supplied the client
    is usable immediately and the context manager is optional.
    """

    def __init__(
        self,
        local_key: str,
        *,
        config: TailwindConfig | None = None,
        transport: Transport | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._local_key = local_key
        self._config = config or TailwindConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        if self._transport is None and session is not None:
            self._transport = HttpTransport(session, timeout=self._config.request_timeout)
        self._sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TailwindClient:
        if self._transport is None:
            self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    @property
    def local_key(self) -> str:
        return self._local_key

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def get_status(self, host: str) -> ControllerStatus:
        """Read controller status including the per-door map."""
        raw = await self._send(host, Command.status())
        try:
            return ControllerStatus.model_validate(raw)
        except ValidationError as exc:
            raise TailwindConnectivityError(f"Unexpected status payload from {host}", host=host) from exc

    async def control_door(self, host: str, door_index: int, cmd: DoorCommand) -> CommandResult:
        """Open or close the door at 0-based *door_index*."""
        raw = await self._send(host, Command.door_operation(door_index, cmd))
        return CommandResult.model_validate(raw)

    async def register_callback(self, host: str, url: str) -> CommandResult:
        """Ask the controller to POST push notifications to *url*."""
        raw = await self._send(host, Command.register_callback(url))
        return CommandResult.model_validate(raw)

    async def unregister_callback(self, host: str) -> CommandResult:
        """Disable push notifications on the controller."""
        raw = await self._send(host, Command.unregister_callback())
        return CommandResult.model_validate(raw)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise TailwindUninitializedError("Client not initialized. Use 'async with TailwindClient(...) as client:'")
        return self._transport

    async def _send(self, host: str, command: Command) -> dict[str, Any]:
        """Send *command*, retrying with exponential backoff.

        Every failure is retryable. The wait before retry ``n`` (0-based) is
        ``retry_delay * 2 ** n`` and there is no wait after the final
        attempt. The last error is re-raised unchanged.
        """
        transport = self._require_transport()
        max_attempts = self._config.max_attempts
        last_exc: Exception | None = None

        for attempt in range(max_attempts):
            try:
                return await self._send_once(transport, host, command)
            except Exception as exc:
                last_exc = exc
                if attempt < max_attempts - 1:
                    delay = self._config.retry_delay * 2**attempt
                    _logger.info(
                        "Command %s to %s failed (attempt %d/%d), retrying in %.1fs: %s",
                        command.data.name,
                        host,
                        attempt + 1,
                        max_attempts,
                        delay,
                        exc,
                    )
                    await self._sleep(delay)

        assert last_exc is not None  # noqa: S101
        raise last_exc

    async def _send_once(self, transport: Transport, host: str, command: Command) -> dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            TOKEN_HEADER: self._local_key,
        }
        response = await transport.post_json(host, headers, command.to_wire())
        if response.get("result") == RESULT_FAIL:
            info = response.get("info")
            raise TailwindApiError(
                str(info) if info else "Unknown API error",
                info=str(info) if info else None,
                host=host,
            )
        return response
