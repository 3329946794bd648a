"""Unified exception hierarchy for flysession.

All session errors inherit from SessionException, enabling unified
error handling: catch SessionException to handle every failure raised
by a registry, store or codec, or catch specific subclasses for targeted
handling.

Categories:
- Lookup: InvalidSessionNameException, NoSessionContextException
- Persistence: MissingStoreException, SessionSaveException
- Decoding: SessionDecodeException, CookieCodecException and subclasses
- Serialization: UnregisteredTypeException
- Aggregation: MultiError
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flysession.session.session import Session


class SessionException(Exception):
    """Base exception for all flysession errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SESSION_INVALID_NAME").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# -- Lookup ---------------------------------------------------------------


class InvalidSessionNameException(SessionException):
    """A session name is not a legal cookie name."""


class NoSessionContextException(SessionException):
    """No SessionContext is active for the current task."""


# -- Persistence ----------------------------------------------------------


class MissingStoreException(SessionException):
    """A registered session has no store to save it with."""


class SessionSaveException(SessionException):
    """A store failed to persist a session."""


# -- Decoding -------------------------------------------------------------


class SessionDecodeException(SessionException):
    """A store could not restore a session from the request.

    The store still builds a usable, empty session and attaches it as
    :attr:`session`, so callers may continue with a fresh session::

        try:
            session = await store.get(ctx, "app")
        except SessionDecodeException as exc:
            session = exc.session
    """

    def __init__(
        self,
        message: str,
        session: Session | None = None,
        code: str | None = "SESSION_DECODE",
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
        self.session = session


class CookieCodecException(SessionException):
    """A secure cookie value could not be encoded or decoded."""


class InvalidMacException(CookieCodecException):
    """The cookie value was not authenticated by the hash key."""


class CookieExpiredException(CookieCodecException):
    """The cookie timestamp is outside the accepted age window."""


class CookieValueTooLongException(CookieCodecException):
    """The encoded cookie value exceeds the configured maximum length."""


# -- Serialization --------------------------------------------------------


class UnregisteredTypeException(SessionException):
    """A session value has a type that was never registered with the codec."""


# -- Aggregation ----------------------------------------------------------


class MultiError(SessionException):
    """Stores multiple errors behind one summarized message.

    The message always shows the first error in full and only counts the
    rest; iterate the instance (or read :attr:`errors`) for full detail.
    """

    def __init__(self, errors: Iterable[BaseException | None] = ()) -> None:
        self.errors: list[BaseException | None] = list(errors)
        super().__init__(self._summary(), code="SESSION_MULTI")

    def __iter__(self) -> Iterator[BaseException | None]:
        return iter(self.errors)

    def __str__(self) -> str:
        return self._summary()

    def _summary(self) -> str:
        first: Any = ""
        n = 0
        for err in self.errors:
            if err is not None:
                if n == 0:
                    first = str(err)
                n += 1
        if n == 0:
            return "(0 errors)"
        if n == 1:
            return first
        if n == 2:
            return f"{first} (and 1 other error)"
        return f"{first} (and {n - 1} other errors)"
