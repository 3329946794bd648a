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
"""Tests for ValueCodec — serialization of heterogeneous session values."""

import enum
from dataclasses import dataclass
from datetime import UTC, date, datetime

import pytest
from pydantic import BaseModel

from flysession.kernel.exceptions import SessionException, UnregisteredTypeException
from flysession.session.codec.values import ValueCodec, default_codec, register_type


@dataclass
class Person:
    first_name: str
    age: int


class Address(BaseModel):
    street: str
    moved_in: datetime | None = None


class Role(enum.Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@pytest.fixture
def codec():
    c = ValueCodec()
    c.register(Person)
    c.register(Address)
    c.register(Role)
    c.register(Point, name="point")
    return c


class TestBuiltins:
    def test_session_values_with_mixed_keys(self, codec):
        values = {
            "name": "alice",
            42: 43,
            ("a", 1): [1.5, None, True],
            "_flash": ["saved!", "again"],
        }
        assert codec.loads(codec.dumps(values)) == values

    def test_containers_keep_their_type(self, codec):
        values = {"t": (1, 2), "s": {1, 2}, "f": frozenset({"x"}), "l": [[1], {"k": "v"}]}
        restored = codec.loads(codec.dumps(values))
        assert restored == values
        assert isinstance(restored["t"], tuple)
        assert isinstance(restored["f"], frozenset)

    def test_bytes_and_dates(self, codec):
        values = {
            "raw": b"\x00\xff",
            "when": datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
            "day": date(2026, 1, 2),
        }
        assert codec.loads(codec.dumps(values)) == values

    def test_output_is_compact_json(self, codec):
        assert codec.dumps({"a": 1}) == b'{"$map":[["a",1]]}'


class TestRegisteredTypes:
    def test_dataclass(self, codec):
        values = {"person": Person("Ada", 36)}
        assert codec.loads(codec.dumps(values)) == values

    def test_pydantic_model(self, codec):
        address = Address(street="Main St", moved_in=datetime(2020, 5, 1, tzinfo=UTC))
        restored = codec.loads(codec.dumps({"address": address}))
        assert restored["address"] == address

    def test_enum(self, codec):
        assert codec.loads(codec.dumps([Role.ADMIN, Role.USER])) == [Role.ADMIN, Role.USER]

    def test_registered_type_as_key(self, codec):
        values = {Point(1, 2): "here"}
        assert codec.loads(codec.dumps(values)) == values

    def test_custom_name(self, codec):
        assert b'"$type":"point"' in codec.dumps(Point(0, 0))

    def test_nested_registered_types(self, codec):
        values = {"people": [Person("A", 1), Person("B", 2)], "roles": {Role.ADMIN}}
        assert codec.loads(codec.dumps(values)) == values

    def test_is_registered(self, codec):
        assert codec.is_registered(Person)
        assert not ValueCodec().is_registered(Person)


class TestUnregisteredTypes:
    def test_unregistered_value_fails_on_dump(self):
        with pytest.raises(UnregisteredTypeException, match="Person"):
            ValueCodec().dumps({"person": Person("Ada", 36)})

    def test_unknown_type_name_fails_on_load(self, codec):
        data = codec.dumps(Person("Ada", 36))
        with pytest.raises(UnregisteredTypeException):
            ValueCodec().loads(data)

    def test_plain_class_cannot_be_registered(self):
        class Plain:
            pass

        with pytest.raises(TypeError):
            ValueCodec().register(Plain)

    def test_malformed_payload(self, codec):
        with pytest.raises(SessionException):
            codec.loads(b"{not json")
        with pytest.raises(SessionException):
            codec.loads(b'{"$unknown": 1}')

    @pytest.mark.parametrize(
        ("value", "old", "new"),
        [
            (Person("Ada", 36), b'"first_name"', b'"nickname"'),
            (Role.ADMIN, b'"admin"', b'"guest"'),
            (Address(street="Main St"), b'"street"', b'"road"'),
            (datetime(2026, 1, 2, tzinfo=UTC), b"2026-01-02", b"not-a-date"),
        ],
    )
    def test_payload_not_matching_registered_types(self, codec, value, old, new):
        payload = codec.dumps(value).replace(old, new)
        with pytest.raises(SessionException) as exc_info:
            codec.loads(payload)
        assert exc_info.value.code == "SESSION_PAYLOAD"

    def test_invalid_bytes_payload(self, codec):
        with pytest.raises(SessionException) as exc_info:
            codec.loads(b'{"$bytes":"abc"}')
        assert exc_info.value.code == "SESSION_PAYLOAD"


class TestDefaultCodec:
    def test_register_type_decorator(self):
        @register_type
        @dataclass
        class Preferences:
            theme: str

        assert default_codec.is_registered(Preferences)
        restored = default_codec.loads(default_codec.dumps({"prefs": Preferences("dark")}))
        assert restored["prefs"] == Preferences("dark")
