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
"""Cookie-backed session store."""

from __future__ import annotations

import dataclasses
import logging

from flysession.kernel.exceptions import SessionDecodeException, SessionException
from flysession.session.codec.securecookie import codecs_from_pairs, decode_multi, encode_multi
from flysession.session.codec.values import ValueCodec
from flysession.session.context import SessionContext
from flysession.session.cookies import new_cookie
from flysession.session.options import DEFAULT_MAX_AGE, SessionOptions
from flysession.session.registry import get_session
from flysession.session.session import Session

_logger = logging.getLogger(__name__)


class CookieStore:
    """Stores session values in authenticated, optionally encrypted cookies.

    Keys are given in ``(hash_key, block_key)`` pairs. New values are always
    written with the first pair; values written with any pair are accepted,
    which allows keys to be rotated without invalidating live sessions::

        store = CookieStore(
            b"new-authentication-key", b"new-encryption-key-32-bytes-long",
            b"old-authentication-key", None,
        )
    """

    def __init__(
        self,
        *key_pairs: bytes | None,
        options: SessionOptions | None = None,
        serializer: ValueCodec | None = None,
    ) -> None:
        self.codecs = codecs_from_pairs(*key_pairs, serializer=serializer)
        self.options = options or SessionOptions(path="/", max_age=DEFAULT_MAX_AGE)
        self.max_age(self.options.max_age)

    async def get(self, ctx: SessionContext | None, name: str) -> Session:
        """Return the session for *name*, registered for the current request."""
        return await get_session(self, name, ctx)

    async def new(self, ctx: SessionContext, name: str) -> Session:
        session = Session(self, name, options=self.options)
        session.is_new = True
        raw = ctx.cookies.get(name)
        if raw:
            try:
                session.values = decode_multi(name, raw, self.codecs)
            except SessionException as exc:
                _logger.warning("Failed to decode session cookie '%s': %s", name, exc)
                raise SessionDecodeException(
                    f"Could not decode session cookie '{name}': {exc}", session=session
                ) from exc
            session.is_new = False
        return session

    async def save(self, ctx: SessionContext, session: Session) -> None:
        if session.options.max_age < 0:
            ctx.set_cookie(new_cookie(session.name, "", session.options))
            return
        encoded = encode_multi(session.name, session.values, self.codecs)
        ctx.set_cookie(new_cookie(session.name, encoded, session.options))

    def max_age(self, age: int) -> None:
        """Set the lifetime of new sessions and of accepted cookie values.

        Sessions already created keep their own options.
        """
        self.options = dataclasses.replace(self.options, max_age=age)
        for codec in self.codecs:
            codec.max_age = max(age, 0)
