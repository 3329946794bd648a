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
"""flysession — request-scoped HTTP sessions for ASGI applications.

Cookie and filesystem backends, flash messages, key rotation, and
batch-saving of every session used during a request::

    store = CookieStore(b"something-very-secret")

    async def handler(request):
        session = await store.get(None, "app")
        session.values["name"] = "Gem"
        await save_all()
        return PlainTextResponse("ok")

    app = SessionMiddleware(Starlette(routes=[Route("/", handler)]))
"""

from flysession.kernel.exceptions import MultiError, SessionDecodeException, SessionException
from flysession.session import (
    Session,
    SessionContext,
    SessionMiddleware,
    SessionOptions,
    SessionStore,
    get_registry,
    get_session,
    save_all,
)
from flysession.session.adapters import CookieStore, FilesystemStore, MemoryStore
from flysession.session.codec import register_type

__version__ = "0.1.0"

__all__ = [
    "CookieStore",
    "FilesystemStore",
    "MemoryStore",
    "MultiError",
    "Session",
    "SessionContext",
    "SessionDecodeException",
    "SessionException",
    "SessionMiddleware",
    "SessionOptions",
    "SessionStore",
    "get_registry",
    "get_session",
    "register_type",
    "save_all",
]
