# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""SessionMiddleware — opens and closes the session context of each request."""

from __future__ import annotations

from typing import Any

import structlog
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from flysession.kernel.exceptions import MultiError
from flysession.session.context import SessionContext
from flysession.session.registry import release_registry, save_all

logger = structlog.get_logger("flysession.session")

STATE_KEY = "session_context"
"""Name under which the context is exposed on ``request.state``."""


class SessionMiddleware:
    """Pure ASGI middleware giving every HTTP request its own session context.

    Reads the request cookies into a fresh :class:`SessionContext`, exposes it
    as ``request.state.session_context`` (and ``SessionContext.current()``),
    appends the cookies written by session stores to the response headers,
    and releases the request's registry once the downstream app returned,
    even on error.

    Args:
        app: The downstream ASGI application.
        save_on_response: Batch-save every session used by the request just
            before the response starts. Failures are logged, not raised.
    """

    def __init__(self, app: ASGIApp, save_on_response: bool = False) -> None:
        self.app = app
        self._save_on_response = save_on_response

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        request_id = connection.headers.get("x-request-id")
        ctx = SessionContext.init(cookies=connection.cookies, request_id=request_id)
        scope.setdefault("state", {})[STATE_KEY] = ctx

        async def _send(message: Message) -> None:
            if message["type"] == "http.response.start":
                if self._save_on_response:
                    await self._save(ctx)
                headers = MutableHeaders(scope=message)
                for cookie in ctx.outbound_cookies:
                    headers.append("set-cookie", cookie.header_value())
            await send(message)

        try:
            await self.app(scope, receive, _send)
        finally:
            release_registry(ctx)
            SessionContext.clear()

    @staticmethod
    async def _save(ctx: SessionContext) -> None:
        try:
            await save_all(ctx)
        except MultiError as exc:
            logger.error(
                "session_batch_save_failed",
                request_id=ctx.request_id,
                error=str(exc),
                errors=[str(e) for e in exc],
            )


def session_context(request: Any) -> SessionContext:
    """Return the session context attached to *request* by :class:`SessionMiddleware`."""
    return getattr(request.state, STATE_KEY)  # type: ignore[no-any-return]
