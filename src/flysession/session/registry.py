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
"""Registry — per-request session cache with coordinated batch saving.

A registry is attached to the request's :class:`SessionContext` on first use
and released back to a process-wide pool when the request ends::

    session = await get_session(store, "app")
    session.values["user"] = "alice"
    await save_all()
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from types import TracebackType

import structlog

from flysession.kernel.exceptions import (
    InvalidSessionNameException,
    MissingStoreException,
    MultiError,
    NoSessionContextException,
    SessionSaveException,
)
from flysession.session.context import SessionContext
from flysession.session.cookies import is_cookie_name_valid
from flysession.session.ports.outbound import SessionStore
from flysession.session.session import Session

logger = structlog.get_logger("flysession.session")

REGISTRY_ATTRIBUTE = "flysession.registry"
"""SessionContext attribute holding the request's registry."""

_DEFAULT_POOL_SIZE = 128


@dataclass
class _SessionInfo:
    """Outcome of the first lookup of a session name."""

    session: Session | None
    error: Exception | None = None
    traceback: TracebackType | None = None


class Registry:
    """Stores the sessions used during one request.

    Not thread-safe: a registry belongs to exactly one request at a time.
    """

    def __init__(self) -> None:
        self._ctx: SessionContext | None = None
        self._sessions: dict[str, _SessionInfo] = {}

    @property
    def context(self) -> SessionContext | None:
        return self._ctx

    def names(self) -> list[str]:
        """Return the registered session names in registration order."""
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, name: object) -> bool:
        return name in self._sessions

    async def get(self, store: SessionStore, name: str) -> Session:
        """Register and return the session for *name* from *store*.

        The store is asked only once per name; later calls return the same
        session object, or re-raise the error of the first lookup. Every call
        rebinds the session to *store*, so a different store passed for an
        already registered name becomes the one that saves it.

        Raises:
            InvalidSessionNameException: If *name* is not a legal cookie name.
            SessionDecodeException: If the store could not restore the session;
                the fallback session is available as ``exc.session``.
        """
        if not is_cookie_name_valid(name):
            raise InvalidSessionNameException(
                f"Invalid character in cookie name: {name!r}",
                code="SESSION_INVALID_NAME",
                context={"name": name},
            )

        info = self._sessions.get(name)
        if info is None:
            try:
                info = _SessionInfo(session=await store.new(self._ctx, name))  # type: ignore[arg-type]
            except Exception as exc:
                info = _SessionInfo(
                    session=getattr(exc, "session", None), error=exc, traceback=exc.__traceback__
                )
                logger.debug("session_lookup_failed", session=name, error=str(exc))
            if info.session is not None:
                info.session._name = name
            self._sessions[name] = info

        if info.session is not None:
            info.session.store = store
        if info.error is not None:
            # keep the first lookup's traceback
            raise info.error.with_traceback(info.traceback)
        return info.session  # type: ignore[return-value]

    async def save(self) -> None:
        """Save every session registered for the request.

        All sessions are attempted even when some fail.

        Raises:
            MultiError: One entry per session that could not be saved.
        """
        errors: list[Exception] = []
        for name, info in list(self._sessions.items()):
            session = info.session
            if session is None:
                continue
            if session.store is None:
                errors.append(
                    MissingStoreException(
                        f"Missing store for session '{name}'",
                        code="SESSION_MISSING_STORE",
                        context={"name": name},
                    )
                )
                continue
            try:
                await session.store.save(self._ctx, session)  # type: ignore[arg-type]
            except Exception as exc:
                errors.append(
                    SessionSaveException(
                        f"Error saving session '{name}': {exc}",
                        code="SESSION_SAVE",
                        context={"name": name, "cause": exc},
                    )
                )

        if errors:
            logger.warning("session_save_failed", failed=len(errors), sessions=len(self._sessions))
            raise MultiError(errors)

    def _reset(self, ctx: SessionContext | None) -> None:
        self._ctx = ctx
        self._sessions = {}


class RegistryPool:
    """Thread-safe free list recycling :class:`Registry` instances.

    Registries are reset both when released and when acquired, so no session
    of a finished request is ever visible to the next one.
    """

    def __init__(self, max_size: int = _DEFAULT_POOL_SIZE) -> None:
        self._free: deque[Registry] = deque()
        self._max_size = max_size
        self._lock = threading.Lock()

    def acquire(self, ctx: SessionContext) -> Registry:
        """Return a cleared registry bound to *ctx*."""
        with self._lock:
            registry = self._free.pop() if self._free else None
        if registry is None:
            registry = Registry()
        registry._reset(ctx)
        return registry

    def release(self, registry: Registry) -> None:
        """Clear *registry* and keep it for reuse if the pool has room."""
        registry._reset(None)
        with self._lock:
            if len(self._free) < self._max_size:
                self._free.append(registry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._free)


registry_pool = RegistryPool()


def _resolve_context(ctx: SessionContext | None) -> SessionContext:
    if ctx is None:
        ctx = SessionContext.current()
    if ctx is None:
        raise NoSessionContextException(
            "No active SessionContext; wrap the application with SessionMiddleware "
            "or call SessionContext.init()",
            code="SESSION_NO_CONTEXT",
        )
    return ctx


def get_registry(ctx: SessionContext | None = None) -> Registry:
    """Return the registry of the current request, creating it on first use."""
    ctx = _resolve_context(ctx)
    registry: Registry | None = ctx.get(REGISTRY_ATTRIBUTE)
    if registry is None:
        registry = registry_pool.acquire(ctx)
        ctx.set(REGISTRY_ATTRIBUTE, registry)
    return registry


async def get_session(store: SessionStore, name: str, ctx: SessionContext | None = None) -> Session:
    """Look up a session through the registry of the current request."""
    return await get_registry(ctx).get(store, name)


async def save_all(ctx: SessionContext | None = None) -> None:
    """Save all sessions used during the current request.

    Raises:
        MultiError: If any session could not be saved.
    """
    await get_registry(ctx).save()


def release_registry(ctx: SessionContext | None = None) -> None:
    """Detach the request's registry and return it to the pool.

    Call only after the request has completed; sessions of the request
    become unreachable through the registry afterwards.
    """
    ctx = _resolve_context(ctx)
    registry: Registry | None = ctx.remove(REGISTRY_ATTRIBUTE)
    if registry is not None:
        registry_pool.release(registry)
