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
"""Filesystem-backed session store."""

from __future__ import annotations

import asyncio
import base64
import dataclasses
import logging
import secrets
import tempfile
import threading
from pathlib import Path

from flysession.kernel.exceptions import SessionDecodeException, SessionException
from flysession.session.codec.securecookie import codecs_from_pairs, decode_multi, encode_multi
from flysession.session.codec.values import ValueCodec
from flysession.session.context import SessionContext
from flysession.session.cookies import new_cookie
from flysession.session.options import DEFAULT_MAX_AGE, SessionOptions
from flysession.session.registry import get_session
from flysession.session.session import Session

_logger = logging.getLogger(__name__)

_FILE_PREFIX = "session_"


def generate_session_id() -> str:
    """Return a random base32 session identifier (256 bits)."""
    return base64.b32encode(secrets.token_bytes(32)).decode("ascii").rstrip("=")


class FilesystemStore:
    """Stores session values in files; the cookie only carries the signed session ID.

    Values are written to ``<path>/session_<id>``. File access is serialized
    through one lock per store and runs in a worker thread so the event loop
    is never blocked.

    Args:
        path: Directory for session files; defaults to the system temp directory.
        key_pairs: Alternating hash and block keys, as for :class:`CookieStore`.
        options: Default cookie options of new sessions.
        serializer: Codec for session values.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *key_pairs: bytes | None,
        options: SessionOptions | None = None,
        serializer: ValueCodec | None = None,
    ) -> None:
        self.path = Path(path) if path else Path(tempfile.gettempdir())
        self.codecs = codecs_from_pairs(*key_pairs, max_length=0, serializer=serializer)
        self.options = options or SessionOptions(path="/", max_age=DEFAULT_MAX_AGE)
        self.max_age(self.options.max_age)
        self._lock = threading.Lock()

    async def get(self, ctx: SessionContext | None, name: str) -> Session:
        """Return the session for *name*, registered for the current request."""
        return await get_session(self, name, ctx)

    async def new(self, ctx: SessionContext, name: str) -> Session:
        session = Session(self, name, options=self.options)
        session.is_new = True
        raw = ctx.cookies.get(name)
        if raw:
            try:
                session_id = decode_multi(name, raw, self.codecs)
                if not isinstance(session_id, str) or not session_id.isalnum():
                    raise SessionException(f"Invalid session ID in cookie '{name}'", code="SESSION_ID")
                session.id = session_id
                await asyncio.to_thread(self._load, session)
            except (SessionException, OSError) as exc:
                _logger.warning("Failed to restore session '%s': %s", name, exc)
                session.id = ""
                session.values = {}
                raise SessionDecodeException(
                    f"Could not restore session '{name}': {exc}", session=session
                ) from exc
            session.is_new = False
        return session

    async def save(self, ctx: SessionContext, session: Session) -> None:
        if session.options.max_age < 0:
            await asyncio.to_thread(self._erase, session)
            ctx.set_cookie(new_cookie(session.name, "", session.options))
            return

        if not session.id:
            session.id = generate_session_id()
        await asyncio.to_thread(self._save, session)
        encoded = encode_multi(session.name, session.id, self.codecs)
        ctx.set_cookie(new_cookie(session.name, encoded, session.options))

    def max_age(self, age: int) -> None:
        """Set the lifetime of new sessions and of accepted values."""
        self.options = dataclasses.replace(self.options, max_age=age)
        for codec in self.codecs:
            codec.max_age = max(age, 0)

    def _file(self, session: Session) -> Path:
        return self.path / f"{_FILE_PREFIX}{session.id}"

    def _save(self, session: Session) -> None:
        encoded = encode_multi(session.name, session.values, self.codecs)
        with self._lock:
            self.path.mkdir(parents=True, exist_ok=True)
            self._file(session).write_text(encoded, encoding="ascii")

    def _load(self, session: Session) -> None:
        with self._lock:
            encoded = self._file(session).read_text(encoding="ascii")
        session.values = decode_multi(session.name, encoded, self.codecs)

    def _erase(self, session: Session) -> None:
        if not session.id:
            return
        with self._lock:
            self._file(session).unlink(missing_ok=True)
