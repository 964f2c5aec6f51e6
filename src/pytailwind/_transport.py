"""HTTP transport for the controller's local JSON endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pytailwind._constants import JSON_PATH
from pytailwind._redact import redact_for_log
from pytailwind.exceptions import TailwindConnectivityError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by :class:`~pytailwind.client.TailwindClient`.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def post_json(
        self,
        host: str,
        headers: Mapping[str, str],
        body: Mapping[str, Any],
    ) -> dict[str, Any]: ...


class HttpTransport:
    """POSTs JSON bodies to ``http://{host}/json`` over a shared aiohttp session.

    Any failure before a JSON object is decoded raises
    :class:`TailwindConnectivityError`; the response ``result`` field is not
    inspected here.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 10.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def post_json(
        self,
        host: str,
        headers: Mapping[str, str],
        body: Mapping[str, Any],
    ) -> dict[str, Any]:
        url = f"http://{host}{JSON_PATH}"
        _logger.debug("POST %s headers=%s body=%s", url, redact_for_log(headers), redact_for_log(body))

        try:
            async with self._http.post(
                url,
                data=json.dumps(body, separators=(",", ":")),
                headers=dict(headers),
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise TailwindConnectivityError(
                        f"HTTP {resp.status} from {host}: {text[:200]}",
                        status_code=resp.status,
                        host=host,
                    )
        except TailwindConnectivityError:
            raise
        except asyncio.TimeoutError as exc:
            raise TailwindConnectivityError(f"Request to {host} timed out", host=host) from exc
        except aiohttp.ClientError as exc:
            raise TailwindConnectivityError(f"Request to {host} failed: {exc}", host=host) from exc

        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TailwindConnectivityError(f"Invalid JSON from {host}: {text[:200]}", host=host) from exc

        if not isinstance(decoded, dict):
            raise TailwindConnectivityError(f"Response from {host} is not a JSON object", host=host)

        _logger.debug("Response from %s: %s", host, redact_for_log(decoded))
        return decoded
