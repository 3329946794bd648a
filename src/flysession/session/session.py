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
"""Session — a named bag of values bound to a session store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flysession.kernel.exceptions import MissingStoreException
from flysession.session.options import SessionOptions

if TYPE_CHECKING:
    from flysession.session.context import SessionContext
    from flysession.session.ports.outbound import SessionStore

FLASHES_KEY = "_flash"
"""Default key under which flash messages are kept."""


class Session:
    """Stores the values and cookie options of one named session.

    Sessions are created by session stores, never directly by application
    code. Handlers mutate :attr:`values` freely and persist them with
    :meth:`save` (or a batch save of the request registry).

    Attributes:
        id: Identifier generated by the store. Not meant for user data.
        values: User data of the session. Keys and values are arbitrary;
            they must be serializable by the store's value codec.
        options: Cookie attributes used when the session is saved.
        is_new: ``True`` if the session was not restored from the request.
    """

    def __init__(
        self,
        store: SessionStore | None,
        name: str,
        options: SessionOptions | None = None,
    ) -> None:
        self.id: str = ""
        self.values: dict[Any, Any] = {}
        self.options: SessionOptions = options if options is not None else SessionOptions()
        self.is_new: bool = False
        self._store = store
        self._name = name

    @property
    def name(self) -> str:
        """The name used to register the session."""
        return self._name

    @property
    def store(self) -> SessionStore | None:
        """The store used by the most recent registry lookup."""
        return self._store

    @store.setter
    def store(self, value: SessionStore | None) -> None:
        self._store = value

    def flashes(self, key: str = FLASHES_KEY) -> list[Any]:
        """Return and drop the flash messages stored under *key*."""
        return list(self.values.pop(key, None) or [])

    def add_flash(self, value: Any, key: str = FLASHES_KEY) -> None:
        """Append a flash message under *key*."""
        flashes = self.values.get(key)
        if isinstance(flashes, list):
            self.values[key] = [*flashes, value]
        else:
            self.values[key] = [value]

    async def save(self, ctx: SessionContext) -> None:
        """Save this session with its store.

        Call before the response starts; store errors propagate unchanged.
        """
        if self._store is None:
            raise MissingStoreException(f"Missing store for session '{self._name}'")
        await self._store.save(ctx, self)

    def __repr__(self) -> str:
        return f"Session(name={self._name!r}, id={self.id!r}, is_new={self.is_new})"
