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
"""Tests for SessionMiddleware running inside a Starlette application."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from flysession.kernel.exceptions import SessionDecodeException
from flysession.session.adapters.cookie import CookieStore
from flysession.session.context import SessionContext
from flysession.session.middleware import SessionMiddleware, session_context
from flysession.session.registry import REGISTRY_ATTRIBUTE, get_session, save_all

HASH_KEY = b"h" * 32


def _build_app(store: CookieStore, *, save_on_response: bool = False, seen: list | None = None) -> Starlette:
    seen = seen if seen is not None else []

    async def increment(request: Request) -> JSONResponse:
        ctx = session_context(request)
        seen.append(ctx)
        try:
            session = await store.get(ctx, "app")
        except SessionDecodeException as exc:
            session = exc.session
        session.values["count"] = session.values.get("count", 0) + 1
        if not save_on_response:
            await session.save(ctx)
        return JSONResponse({"count": session.values["count"]})

    async def current(request: Request) -> JSONResponse:
        ctx = SessionContext.current()
        seen.append(ctx)
        session = await get_session(store, "app")
        return JSONResponse({"same": ctx is session_context(request), "count": session.values.get("count", 0)})

    async def flash(request: Request) -> PlainTextResponse:
        ctx = session_context(request)
        session = await store.get(ctx, "app")
        session.add_flash("saved!")
        await save_all(ctx)
        return PlainTextResponse("ok")

    async def read_flash(request: Request) -> JSONResponse:
        ctx = session_context(request)
        session = await store.get(ctx, "app")
        messages = session.flashes()
        await session.save(ctx)
        return JSONResponse({"flashes": messages})

    async def boom(request: Request) -> PlainTextResponse:
        seen.append(session_context(request))
        await store.get(session_context(request), "app")
        raise RuntimeError("handler failed")

    return Starlette(
        routes=[
            Route("/increment", increment),
            Route("/current", current),
            Route("/flash", flash),
            Route("/read-flash", read_flash),
            Route("/boom", boom),
        ],
        middleware=[Middleware(SessionMiddleware, save_on_response=save_on_response)],
    )


class TestSessionMiddleware:
    def test_saved_session_sets_cookie(self):
        client = TestClient(_build_app(CookieStore(HASH_KEY)))
        response = client.get("/increment")
        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("app=")
        assert "Path=/" in set_cookie

    def test_session_survives_across_requests(self):
        client = TestClient(_build_app(CookieStore(HASH_KEY)))
        assert client.get("/increment").json() == {"count": 1}
        assert client.get("/increment").json() == {"count": 2}
        assert client.get("/increment").json() == {"count": 3}

    def test_flash_is_consumed_once(self):
        client = TestClient(_build_app(CookieStore(HASH_KEY)))
        client.get("/flash")
        assert client.get("/read-flash").json() == {"flashes": ["saved!"]}
        assert client.get("/read-flash").json() == {"flashes": []}

    def test_save_on_response_saves_without_handler_call(self):
        client = TestClient(_build_app(CookieStore(HASH_KEY), save_on_response=True))
        assert client.get("/increment").json() == {"count": 1}
        assert client.get("/increment").json() == {"count": 2}

    def test_without_save_no_cookie_is_sent(self):
        client = TestClient(_build_app(CookieStore(HASH_KEY)))
        response = client.get("/current")
        assert "set-cookie" not in response.headers

    def test_context_is_available_through_contextvar(self):
        client = TestClient(_build_app(CookieStore(HASH_KEY)))
        client.get("/increment")
        assert client.get("/current").json() == {"same": True, "count": 1}

    def test_request_id_header_is_used(self):
        seen: list[SessionContext] = []
        client = TestClient(_build_app(CookieStore(HASH_KEY), seen=seen))
        client.get("/increment", headers={"x-request-id": "req-42"})
        assert seen[0].request_id == "req-42"

    def test_registry_released_after_request(self):
        seen: list[SessionContext] = []
        client = TestClient(_build_app(CookieStore(HASH_KEY), seen=seen))
        client.get("/increment")
        assert seen[0].get(REGISTRY_ATTRIBUTE) is None

    def test_registry_released_when_handler_fails(self):
        seen: list[SessionContext] = []
        client = TestClient(_build_app(CookieStore(HASH_KEY), seen=seen), raise_server_exceptions=False)
        response = client.get("/boom")
        assert response.status_code == 500
        assert seen[0].get(REGISTRY_ATTRIBUTE) is None

    def test_invalid_cookie_starts_fresh_session(self):
        store = CookieStore(HASH_KEY)
        client = TestClient(_build_app(store))
        response = client.get("/increment", headers={"cookie": "app=forged"})
        assert response.json() == {"count": 1}
        assert response.headers["set-cookie"].startswith("app=")
        assert client.get("/increment").json() == {"count": 2}

    @pytest.mark.asyncio
    async def test_non_http_scopes_pass_through(self):
        received: list[str] = []

        async def inner(scope, receive, send):
            received.append(scope["type"])

        scope = {"type": "lifespan"}
        middleware = SessionMiddleware(inner)
        await middleware(scope, None, None)
        assert received == ["lifespan"]
        assert "state" not in scope
