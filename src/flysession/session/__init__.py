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
"""flysession.session — request-scoped sessions with pluggable stores.

Import concrete store types from the adapter package::

    from flysession.session.adapters.cookie import CookieStore
    from flysession.session.adapters.filesystem import FilesystemStore
    from flysession.session.adapters.memory import MemoryStore
"""

from flysession.session.context import SessionContext
from flysession.session.cookies import Cookie, is_cookie_name_valid, new_cookie
from flysession.session.middleware import SessionMiddleware, session_context
from flysession.session.options import SessionOptions
from flysession.session.ports.outbound import SessionStore
from flysession.session.registry import (
    Registry,
    RegistryPool,
    get_registry,
    get_session,
    release_registry,
    save_all,
)
from flysession.session.session import Session

__all__ = [
    "Cookie",
    "Registry",
    "RegistryPool",
    "Session",
    "SessionContext",
    "SessionMiddleware",
    "SessionOptions",
    "SessionStore",
    "get_registry",
    "get_session",
    "is_cookie_name_valid",
    "new_cookie",
    "release_registry",
    "save_all",
    "session_context",
]
