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
"""Session and logging configuration properties."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from flysession.core.config import config_properties
from flysession.session.options import DEFAULT_MAX_AGE, SessionOptions


@config_properties(prefix="flysession.session")
class SessionProperties(BaseModel):
    """Configuration for session stores (flysession.session.*).

    ``keys`` holds alternating hash and block keys; an empty string stands
    for "no block key". A comma-separated string is accepted so the keys can
    come from a single environment variable.
    """

    store: Literal["cookie", "filesystem", "memory"] = "cookie"
    keys: list[str] = Field(default_factory=list)
    path: str = "/"
    domain: str = ""
    max_age: int = DEFAULT_MAX_AGE
    secure: bool = False
    http_only: bool = True
    same_site: Literal["lax", "strict", "none"] | None = None
    filesystem_path: str = ""
    save_on_response: bool = False

    @field_validator("keys", mode="before")
    @classmethod
    def _split_keys(cls, value: object) -> object:
        if isinstance(value, str):
            return [k.strip() for k in value.split(",")]
        return value

    def key_pairs(self) -> list[bytes | None]:
        """Return the configured keys as bytes, empty entries as ``None``."""
        return [k.encode() if k else None for k in self.keys]

    def to_options(self) -> SessionOptions:
        return SessionOptions(
            path=self.path,
            domain=self.domain,
            max_age=self.max_age,
            secure=self.secure,
            http_only=self.http_only,
            same_site=self.same_site,
        )


@config_properties(prefix="flysession.logging")
class LoggingProperties(BaseModel):
    """Configuration for structured logging (flysession.logging.*)."""

    level: str = "INFO"
    format: Literal["console", "json"] = "console"
    session_level: str | None = None
