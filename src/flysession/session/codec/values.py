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
"""ValueCodec — JSON-based serializer for heterogeneous session values.

Built-in kinds round-trip out of the box: ``None``, ``bool``, ``int``,
``float``, ``str``, ``list``, ``tuple``, ``set``, ``frozenset``, ``dict``
(with arbitrary keys), ``bytes``, ``datetime`` and ``date``.

Application types must be registered before they are stored in a session::

    @dataclass
    class Person:
        first_name: str
        age: int

    register_type(Person)

Dataclasses, Pydantic models and enums can be registered; anything else is
rejected at registration time.
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import enum
import json
from collections.abc import Callable
from datetime import date, datetime
from typing import Any, TypeVar

from pydantic import BaseModel

from flysession.kernel.exceptions import SessionException, UnregisteredTypeException

T = TypeVar("T", bound=type)

_TAG_MAP = "$map"
_TAG_TUPLE = "$tuple"
_TAG_SET = "$set"
_TAG_FROZENSET = "$frozenset"
_TAG_BYTES = "$bytes"
_TAG_DATETIME = "$datetime"
_TAG_DATE = "$date"
_TAG_TYPE = "$type"
_TAG_VALUE = "$value"


@dataclasses.dataclass(frozen=True)
class _Registration:
    name: str
    cls: type
    dump: Callable[[Any], Any]
    load: Callable[[Any], Any]


class ValueCodec:
    """Serializes session values to bytes and back.

    Every JSON object in the output is a tagged envelope, so plain dicts and
    registered types never collide with each other.
    """

    def __init__(self) -> None:
        self._by_name: dict[str, _Registration] = {}
        self._by_type: dict[type, _Registration] = {}

    def register(self, cls: type, name: str | None = None) -> None:
        """Register *cls* for serialization under *name* (default: qualified name).

        Raises:
            TypeError: If *cls* is not a dataclass, Pydantic model or enum.
        """
        name = name or f"{cls.__module__}.{cls.__qualname__}"
        if isinstance(cls, type) and issubclass(cls, enum.Enum):
            reg = _Registration(name, cls, lambda v: v.value, cls)
        elif isinstance(cls, type) and issubclass(cls, BaseModel):
            reg = _Registration(name, cls, lambda v: v.model_dump(), cls.model_validate)
        elif isinstance(cls, type) and dataclasses.is_dataclass(cls):
            reg = _Registration(
                name,
                cls,
                lambda v: {f.name: getattr(v, f.name) for f in dataclasses.fields(v)},
                lambda fields: cls(**fields),
            )
        else:
            raise TypeError(
                f"Cannot register {cls!r}: only dataclasses, Pydantic models and enums are supported"
            )
        self._by_name[name] = reg
        self._by_type[cls] = reg

    def is_registered(self, cls: type) -> bool:
        return cls in self._by_type

    def dumps(self, value: Any) -> bytes:
        """Serialize *value* to compact JSON bytes.

        Raises:
            UnregisteredTypeException: If *value* contains an unregistered type.
        """
        return json.dumps(self._encode(value), separators=(",", ":")).encode()

    def loads(self, data: bytes) -> Any:
        """Deserialize bytes produced by :meth:`dumps`.

        Raises:
            SessionException: If *data* is malformed or names an unknown type.
        """
        try:
            raw = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SessionException(f"Malformed session payload: {exc}", code="SESSION_PAYLOAD") from exc
        try:
            return self._decode(raw)
        except (ValueError, TypeError, KeyError, AttributeError, binascii.Error) as exc:
            raise SessionException(f"Invalid session payload: {exc}", code="SESSION_PAYLOAD") from exc

    def _encode(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, int, float, str)) and not isinstance(value, enum.Enum):
            return value

        reg = self._by_type.get(type(value))
        if reg is not None:
            return {_TAG_TYPE: reg.name, _TAG_VALUE: self._encode(reg.dump(value))}

        if isinstance(value, list):
            return [self._encode(v) for v in value]
        if isinstance(value, tuple):
            return {_TAG_TUPLE: [self._encode(v) for v in value]}
        if isinstance(value, frozenset):
            return {_TAG_FROZENSET: [self._encode(v) for v in value]}
        if isinstance(value, set):
            return {_TAG_SET: [self._encode(v) for v in value]}
        if isinstance(value, dict):
            return {_TAG_MAP: [[self._encode(k), self._encode(v)] for k, v in value.items()]}
        if isinstance(value, bytes):
            return {_TAG_BYTES: base64.b64encode(value).decode("ascii")}
        if isinstance(value, datetime):
            return {_TAG_DATETIME: value.isoformat()}
        if isinstance(value, date):
            return {_TAG_DATE: value.isoformat()}

        cls = type(value)
        raise UnregisteredTypeException(
            f"Type {cls.__module__}.{cls.__qualname__} is not registered with the session value codec",
            code="SESSION_UNREGISTERED_TYPE",
        )

    def _decode(self, raw: Any) -> Any:
        if isinstance(raw, list):
            return [self._decode(v) for v in raw]
        if not isinstance(raw, dict):
            return raw

        if _TAG_MAP in raw:
            return {self._freeze(self._decode(k)): self._decode(v) for k, v in raw[_TAG_MAP]}
        if _TAG_TUPLE in raw:
            return tuple(self._decode(v) for v in raw[_TAG_TUPLE])
        if _TAG_SET in raw:
            return {self._freeze(self._decode(v)) for v in raw[_TAG_SET]}
        if _TAG_FROZENSET in raw:
            return frozenset(self._freeze(self._decode(v)) for v in raw[_TAG_FROZENSET])
        if _TAG_BYTES in raw:
            return base64.b64decode(raw[_TAG_BYTES])
        if _TAG_DATETIME in raw:
            return datetime.fromisoformat(raw[_TAG_DATETIME])
        if _TAG_DATE in raw:
            return date.fromisoformat(raw[_TAG_DATE])
        if _TAG_TYPE in raw:
            reg = self._by_name.get(raw[_TAG_TYPE])
            if reg is None:
                raise UnregisteredTypeException(
                    f"Type {raw[_TAG_TYPE]} is not registered with the session value codec",
                    code="SESSION_UNREGISTERED_TYPE",
                )
            return reg.load(self._decode(raw[_TAG_VALUE]))

        raise SessionException(f"Unknown value envelope: {sorted(raw)}", code="SESSION_PAYLOAD")

    @staticmethod
    def _freeze(value: Any) -> Any:
        # Lists decoded in key position become tuples so they stay hashable.
        if isinstance(value, list):
            return tuple(value)
        return value


default_codec = ValueCodec()
"""Process-wide codec used by stores that are not given their own."""


def register_type(cls: T, name: str | None = None) -> T:
    """Register *cls* with the default codec; usable as a class decorator."""
    default_codec.register(cls, name)
    return cls
