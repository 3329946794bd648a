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
"""Session store protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from flysession.session.context import SessionContext
    from flysession.session.session import Session


@runtime_checkable
class SessionStore(Protocol):
    """Abstract session persistence interface.

    All session backends (cookie, filesystem, in-memory, custom) must
    implement this protocol. Stores are the only authority that constructs
    and persists sessions; the registry never bypasses them.
    """

    async def new(self, ctx: SessionContext, name: str) -> Session:
        """Create a session for *name*, restoring persisted values if present.

        When persisted state cannot be decoded or verified, raise
        :class:`~flysession.kernel.exceptions.SessionDecodeException` carrying
        a usable new session (``is_new=True``) instead of returning it.
        """
        ...

    async def save(self, ctx: SessionContext, session: Session) -> None:
        """Persist ``session.values`` under ``session.options``.

        Saving overwrites previous state and may run more than once per
        request. A negative ``options.max_age`` deletes the session.
        """
        ...
