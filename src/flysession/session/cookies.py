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
"""Cookie construction from SessionOptions and cookie-name validation."""

from __future__ import annotations

import http.cookies
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from email.utils import format_datetime
from typing import Any

from flysession.session.options import SessionOptions

# RFC 2616 separators; together with control characters they are not token characters.
_SEPARATORS = frozenset('()<>@,;:\\"/[]?={} \t')

EXPIRED: datetime = datetime.fromtimestamp(1, tz=UTC)
"""Expiry used for cookies that must be deleted now."""


def is_cookie_name_valid(name: str) -> bool:
    """Return ``True`` if *name* is a non-empty RFC 2616 token."""
    if not name:
        return False
    return all(0x20 < ord(ch) < 0x7F and ch not in _SEPARATORS for ch in name)


@dataclass(frozen=True)
class Cookie:
    """An outbound cookie ready to be written to a response."""

    name: str
    value: str
    path: str = "/"
    domain: str = ""
    expires: datetime | None = None
    secure: bool = False
    http_only: bool = False
    same_site: str | None = None

    def header_value(self) -> str:
        """Render the ``Set-Cookie`` header value."""
        jar: http.cookies.SimpleCookie = http.cookies.SimpleCookie()
        jar[self.name] = self.value
        morsel = jar[self.name]
        if self.path:
            morsel["path"] = self.path
        if self.domain:
            morsel["domain"] = self.domain
        if self.expires is not None:
            morsel["expires"] = format_datetime(self.expires, usegmt=True)
        if self.secure:
            morsel["secure"] = True
        if self.http_only:
            morsel["httponly"] = True
        if self.same_site:
            morsel["samesite"] = self.same_site
        return morsel.OutputString()

    def apply(self, response: Any) -> None:
        """Write this cookie to a Starlette ``Response``."""
        response.set_cookie(
            key=self.name,
            value=self.value,
            expires=self.expires,
            path=self.path,
            domain=self.domain or None,
            secure=self.secure,
            httponly=self.http_only,
            samesite=self.same_site,
        )


def new_cookie(name: str, value: str, options: SessionOptions) -> Cookie:
    """Build a :class:`Cookie` with the attributes from *options*.

    ``Expires`` is derived from ``max_age`` for clients that ignore
    ``Max-Age``: a positive age expires that many seconds from now, a
    negative age expires in the past, and zero leaves the cookie without
    an expiry so it lasts for the browser session.
    """
    expires: datetime | None = None
    if options.max_age > 0:
        expires = datetime.now(UTC) + timedelta(seconds=options.max_age)
    elif options.max_age < 0:
        expires = EXPIRED

    return Cookie(
        name=name,
        value=value,
        path=options.path,
        domain=options.domain,
        expires=expires,
        secure=options.secure,
        http_only=options.http_only,
        same_site=options.same_site,
    )
