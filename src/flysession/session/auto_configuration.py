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
"""Session subsystem auto-configuration from ``flysession.session.*`` properties."""

from __future__ import annotations

import structlog
from starlette.types import ASGIApp

from flysession.config.properties import SessionProperties
from flysession.core.config import Config
from flysession.kernel.exceptions import SessionException
from flysession.session.middleware import SessionMiddleware
from flysession.session.ports.outbound import SessionStore

logger = structlog.get_logger("flysession.session")


def create_session_store(config: Config) -> SessionStore:
    """Build the session store selected by ``flysession.session.store``.

    Raises:
        SessionException: If no keys are configured.
    """
    props = config.bind(SessionProperties)
    keys = props.key_pairs()
    if not keys or keys[0] is None:
        raise SessionException(
            "No session keys configured; set 'flysession.session.keys'",
            code="SESSION_NO_KEYS",
        )
    options = props.to_options()

    if props.store == "filesystem":
        from flysession.session.adapters.filesystem import FilesystemStore

        store: SessionStore = FilesystemStore(props.filesystem_path or None, *keys, options=options)
    elif props.store == "memory":
        from flysession.session.adapters.memory import MemoryStore

        store = MemoryStore(*keys, options=options)
    else:
        from flysession.session.adapters.cookie import CookieStore

        store = CookieStore(*keys, options=options)

    logger.info("session_store_configured", store=props.store, key_pairs=(len(keys) + 1) // 2)
    return store


def create_session_middleware(app: ASGIApp, config: Config) -> SessionMiddleware:
    """Wrap *app* in a :class:`SessionMiddleware` configured from *config*."""
    props = config.bind(SessionProperties)
    return SessionMiddleware(app, save_on_response=props.save_on_response)
