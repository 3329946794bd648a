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
"""Configuration from YAML/TOML files and env vars, bound to Pydantic models."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")
_ENV_PREFIX = "FLYSESSION_"
_ROOT_KEY = "flysession."

_CONFIG_PROPERTIES_ATTR = "__flysession_config_prefix__"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a Pydantic model as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="flysession.session")
        class SessionProperties(BaseModel):
            max_age: int = 86400
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access and env var overrides.

    Priority (highest wins):
    1. Environment variables (``flysession.session.max_age`` -> ``FLYSESSION_SESSION_MAX_AGE``)
    2. Configuration dict / file values
    3. Model defaults
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Load configuration from a YAML or TOML file; a missing file yields an empty config."""
        path = Path(path)
        if not path.exists():
            return cls()
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return cls(tomllib.load(f) or {})
        with open(path) as f:
            return cls(yaml.safe_load(f) or {})

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the raw configuration data."""
        return dict(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        String values may hold ``${ENV_VAR}``, ``${config.key}`` or
        ``${key:default}`` placeholders.
        """
        env_val = os.environ.get(self._env_key(key))
        if env_val is not None:
            return env_val

        current = self._lookup(key)
        if current is None:
            return default
        if isinstance(current, str) and "${" in current:
            return self._resolve_placeholders(current)
        return current

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Get all values under a prefix as a dict, with env overrides applied to its keys."""
        section = self._lookup(prefix)
        section = dict(section) if isinstance(section, dict) else {}
        env_prefix = self._env_key(prefix) + "_"
        for env_key, env_val in os.environ.items():
            if env_key.startswith(env_prefix):
                section[env_key[len(env_prefix) :].lower()] = env_val
        for key, value in section.items():
            if isinstance(value, str) and "${" in value:
                section[key] = self._resolve_placeholders(value)
        return section

    def bind(self, model_cls: type[M]) -> M:
        """Bind the model's prefix section to a ``@config_properties`` Pydantic model."""
        prefix = getattr(model_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{model_cls.__name__} is not decorated with @config_properties")

        section = self.get_section(prefix)
        try:
            return model_cls.model_validate(section)
        except ValidationError as exc:
            raise ValueError(
                f"Configuration validation failed for '{model_cls.__name__}' (prefix='{prefix}'):\n{exc}"
            ) from exc

    @staticmethod
    def _env_key(key: str) -> str:
        return _ENV_PREFIX + key.removeprefix(_ROOT_KEY).upper().replace(".", "_").replace("-", "_")

    def _lookup(self, key: str) -> Any:
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    def _resolve_placeholders(self, value: str, _depth: int = 0) -> str:
        if _depth > 10:
            raise ValueError(
                f"Max recursion depth exceeded resolving placeholders in '{value}'. Check for circular references."
            )

        def _replace(match: re.Match[str]) -> str:
            ref_key, sep, default_val = match.group(1).partition(":")
            env_val = os.environ.get(ref_key)
            if env_val is not None:
                return env_val
            current = self._lookup(ref_key)
            if current is not None:
                resolved = str(current)
                if "${" in resolved:
                    resolved = self._resolve_placeholders(resolved, _depth + 1)
                return resolved
            if sep:
                return default_val
            raise ValueError(
                f"Cannot resolve placeholder '${{{match.group(1)}}}': not found in environment or config"
            )

        return _PLACEHOLDER_RE.sub(_replace, value)
