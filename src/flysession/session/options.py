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
"""SessionOptions — cookie attributes for a session or session store."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MAX_AGE: int = 86400 * 30
"""Default session lifetime used by the built-in stores (30 days)."""


@dataclass(frozen=True)
class SessionOptions:
    """Configuration for a session or session store.

    Fields are a subset of ``Set-Cookie`` attributes. Options are immutable;
    replace them wholesale to reconfigure a session::

        session.options = dataclasses.replace(session.options, max_age=86400 * 7)

    Attributes:
        path: Cookie ``Path`` attribute. Empty means no attribute.
        domain: Cookie ``Domain`` attribute. Empty means no attribute.
        max_age: ``0`` means no expiry attribute (browser-session cookie),
            a negative value deletes the cookie now, a positive value is the
            lifetime in seconds.
        secure: Emit the ``Secure`` flag.
        http_only: Emit the ``HttpOnly`` flag.
        same_site: ``"lax"``, ``"strict"``, ``"none"`` or ``None`` for no attribute.
    """

    path: str = "/"
    domain: str = ""
    max_age: int = 0
    secure: bool = False
    http_only: bool = False
    same_site: str | None = None
