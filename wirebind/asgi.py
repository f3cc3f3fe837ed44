"""
ASGI adapter - lets an ASGI server (uvicorn) serve an Application.

The server does the HTTP work; this adapter only maps the ASGI scope to
``Application.dispatch`` and sends the resulting Response back.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict
from urllib.parse import parse_qsl
import logging

from .application import Application


Scope = Dict[str, Any]
Receive = Callable[[], Awaitable[Dict[str, Any]]]
Send = Callable[[Dict[str, Any]], Awaitable[None]]


class ASGIAdapter:
    """
    ASGI application adapter.

    Supports the ``http`` and ``lifespan`` scope types. The application
    is fully bootstrapped before the adapter is created, so lifespan
    startup has nothing left to do but acknowledge.
    """

    __slots__ = ("application", "logger")

    def __init__(self, application: Application):
        self.application = application
        self.logger = logging.getLogger("wirebind.asgi")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        scope_type = scope["type"]
        if scope_type == "http":
            await self.handle_http(scope, receive, send)
        elif scope_type == "lifespan":
            await self.handle_lifespan(scope, receive, send)
        else:
            self.logger.warning("Unsupported ASGI scope type: %s", scope_type)

    async def handle_http(self, scope: Scope, receive: Receive, send: Send) -> None:
        # Drain the request body; handlers here don't read it
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            more_body = message.get("more_body", False)

        query = dict(parse_qsl(scope.get("query_string", b"").decode("latin-1")))
        headers = {
            name.decode("latin-1").lower(): value.decode("latin-1")
            for name, value in scope.get("headers", [])
        }

        response = await self.application.dispatch(
            scope["method"],
            scope["path"],
            query=query,
            headers=headers,
        )

        await response.send_asgi(send)

    async def handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self.logger.info(
                    "Serving '%s' (%d routes)",
                    self.application.name, len(self.application.router),
                )
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return


def asgi_app(application: Application) -> ASGIAdapter:
    """Wrap an application for an ASGI server."""
    return ASGIAdapter(application)
