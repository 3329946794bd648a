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
"""Request-scoped session context backed by contextvars.

Each HTTP request gets a fresh SessionContext via SessionMiddleware.
The context exposes the inbound cookies, collects outbound cookies written
by session stores, and stores arbitrary attributes (the request's session
registry among them).
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

from flysession.session.cookies import Cookie

_session_context_var: ContextVar[SessionContext | None] = ContextVar(
    "flysession_session_context", default=None
)


class SessionContext:
    """Holds per-request session state: cookies in, cookies out, attributes.

    Use ``SessionContext.init()`` to create a new context for the current
    async task, and ``SessionContext.current()`` to retrieve it.
    """

    def __init__(
        self,
        cookies: Mapping[str, str] | None = None,
        request_id: str | None = None,
    ) -> None:
        self._request_id = request_id or uuid.uuid4().hex
        self._cookies: dict[str, str] = dict(cookies or {})
        self._outbound: dict[str, Cookie] = {}
        self._attributes: dict[str, Any] = {}

    @property
    def request_id(self) -> str:
        return self._request_id

    @property
    def cookies(self) -> Mapping[str, str]:
        """Cookies sent by the client, read-only."""
        return MappingProxyType(self._cookies)

    def get(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._attributes[key] = value

    def remove(self, key: str) -> Any:
        return self._attributes.pop(key, None)

    def set_cookie(self, cookie: Cookie) -> None:
        """Queue *cookie* for the response. A later cookie with the same name wins."""
        self._outbound[cookie.name] = cookie

    @property
    def outbound_cookies(self) -> list[Cookie]:
        return list(self._outbound.values())

    def apply_cookies(self, response: Any) -> Any:
        """Write every queued cookie to a Starlette ``Response`` and return it."""
        for cookie in self._outbound.values():
            cookie.apply(response)
        return response

    @classmethod
    def init(
        cls,
        cookies: Mapping[str, str] | None = None,
        request_id: str | None = None,
    ) -> SessionContext:
        """Create and set a new SessionContext for the current async task."""
        ctx = cls(cookies=cookies, request_id=request_id)
        _session_context_var.set(ctx)
        return ctx

    @classmethod
    def current(cls) -> SessionContext | None:
        """Get the SessionContext for the current async task, or None."""
        return _session_context_var.get()

    @classmethod
    def clear(cls) -> None:
        """Clear the SessionContext for the current async task."""
        _session_context_var.set(None)
