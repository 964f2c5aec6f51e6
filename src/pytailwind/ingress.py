"""aiohttp web application receiving controller push notifications.

The controller POSTs its status body to the registered callback URL,
``{callback_path}?host=<controller host>``; the ``host`` query parameter is
forwarded as the source tag.
"""

from __future__ import annotations

import json
import logging

from aiohttp import web

from pytailwind.exceptions import TailwindPayloadError
from pytailwind.notifications import NotificationRouter, receive_notification

_logger = logging.getLogger(__name__)

ROUTER_KEY: web.AppKey[NotificationRouter] = web.AppKey("router", NotificationRouter)


async def _handle_notification(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except json.JSONDecodeError:
        _logger.debug("Rejected non-JSON notification from %s", request.remote)
        return web.json_response({"error": "Invalid notification payload"}, status=400)

    try:
        receive_notification(request.app[ROUTER_KEY], body, request.query.get("host"))
    except TailwindPayloadError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    return web.json_response(True)


async def _handle_log(request: web.Request) -> web.Response:
    entries = request.app[ROUTER_KEY].get_notification_log()
    return web.json_response([entry.as_dict() for entry in entries])


def create_ingress_app(router: NotificationRouter, *, callback_path: str = "/notification") -> web.Application:
    app = web.Application()
    app[ROUTER_KEY] = router
    app.router.add_post(callback_path, _handle_notification)
    app.router.add_get("/notifications", _handle_log)
    return app
