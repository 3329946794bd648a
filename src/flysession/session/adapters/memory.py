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
"""In-memory session store with TTL-based expiry."""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import time
from typing import Any

from flysession.kernel.exceptions import SessionDecodeException, SessionException
from flysession.session.adapters.filesystem import generate_session_id
from flysession.session.codec.securecookie import codecs_from_pairs, decode_multi, encode_multi
from flysession.session.context import SessionContext
from flysession.session.cookies import new_cookie
from flysession.session.options import DEFAULT_MAX_AGE, SessionOptions
from flysession.session.registry import get_session
from flysession.session.session import Session


class MemoryStore:
    """In-process session store with TTL support and asyncio.Lock for safety.

    The cookie carries the signed session ID; values stay in this process.
    Suitable for development, testing, and single-process applications.
    """

    def __init__(self, *key_pairs: bytes | None, options: SessionOptions | None = None) -> None:
        self.codecs = codecs_from_pairs(*key_pairs)
        self.options = options or SessionOptions(path="/", max_age=DEFAULT_MAX_AGE)
        self.max_age(self.options.max_age)
        self._store: dict[str, tuple[dict[Any, Any], float | None]] = {}
        self._lock = asyncio.Lock()

    async def get(self, ctx: SessionContext | None, name: str) -> Session:
        """Return the session for *name*, registered for the current request."""
        return await get_session(self, name, ctx)

    async def new(self, ctx: SessionContext, name: str) -> Session:
        session = Session(self, name, options=self.options)
        session.is_new = True
        raw = ctx.cookies.get(name)
        if not raw:
            return session

        try:
            session_id = decode_multi(name, raw, self.codecs)
        except SessionException as exc:
            raise SessionDecodeException(
                f"Could not decode session cookie '{name}': {exc}", session=session
            ) from exc
        if not isinstance(session_id, str):
            raise SessionDecodeException(f"Invalid session ID in cookie '{name}'", session=session)

        values = await self._load(session_id)
        if values is not None:
            session.id = session_id
            session.values = values
            session.is_new = False
        return session

    async def save(self, ctx: SessionContext, session: Session) -> None:
        if session.options.max_age < 0:
            async with self._lock:
                self._store.pop(session.id, None)
            ctx.set_cookie(new_cookie(session.name, "", session.options))
            return

        if not session.id:
            session.id = generate_session_id()
        expires_at = (
            time.monotonic() + session.options.max_age if session.options.max_age > 0 else None
        )
        async with self._lock:
            self._store[session.id] = (copy.deepcopy(session.values), expires_at)
        encoded = encode_multi(session.name, session.id, self.codecs)
        ctx.set_cookie(new_cookie(session.name, encoded, session.options))

    def max_age(self, age: int) -> None:
        """Set the lifetime of new sessions."""
        self.options = dataclasses.replace(self.options, max_age=age)
        for codec in self.codecs:
            codec.max_age = max(age, 0)

    async def _load(self, session_id: Any) -> dict[Any, Any] | None:
        """Return a copy of the stored values, or ``None`` if missing or expired."""
        async with self._lock:
            entry = self._store.get(session_id)
            if entry is None:
                return None

            values, expires_at = entry
            if expires_at is not None and time.monotonic() > expires_at:
                del self._store[session_id]
                return None

            return copy.deepcopy(values)

    def __len__(self) -> int:
        return len(self._store)
