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
"""SecureCookie — authenticated and optionally encrypted cookie values.

Encoded layout, URL-safe base64 without padding::

    timestamp | base64(payload) | hmac-sha256(name | timestamp | base64(payload))

where *payload* is the serialized value, AES-GCM encrypted when a block key
is configured. Key rotation is provided by :func:`codecs_from_pairs` together
with :func:`encode_multi` / :func:`decode_multi`.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import os
import time
from collections.abc import Sequence
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from flysession.kernel.exceptions import (
    CookieCodecException,
    CookieExpiredException,
    CookieValueTooLongException,
    InvalidMacException,
    MultiError,
)
from flysession.session.codec.values import ValueCodec, default_codec

DEFAULT_MAX_AGE: int = 86400 * 30
DEFAULT_MAX_LENGTH: int = 4096
_NONCE_SIZE = 12
_BLOCK_KEY_SIZES = (16, 24, 32)


def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    try:
        return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
    except (binascii.Error, ValueError) as exc:
        raise CookieCodecException("Base64 decode failed", code="COOKIE_BASE64") from exc


class SecureCookie:
    """Encodes and decodes authenticated, optionally encrypted cookie values.

    Args:
        hash_key: Key used to authenticate values with HMAC-SHA256. Required;
            32 or 64 random bytes are recommended.
        block_key: Optional AES key (16, 24 or 32 bytes). When set, values
            are encrypted with AES-GCM before being authenticated.
        max_age: Maximum age in seconds of accepted values; ``0`` disables the check.
        min_age: Minimum age in seconds of accepted values; ``0`` disables the check.
        max_length: Maximum length of encoded values; ``0`` disables the check.
        serializer: Codec for the values; defaults to the process-wide codec.
    """

    def __init__(
        self,
        hash_key: bytes,
        block_key: bytes | None = None,
        *,
        max_age: int = DEFAULT_MAX_AGE,
        min_age: int = 0,
        max_length: int = DEFAULT_MAX_LENGTH,
        serializer: ValueCodec | None = None,
    ) -> None:
        if not hash_key:
            raise ValueError("Hash key is not set")
        if block_key and len(block_key) not in _BLOCK_KEY_SIZES:
            raise ValueError(f"Block key must be 16, 24 or 32 bytes, got {len(block_key)}")
        self._hash_key = hash_key
        self._aead = AESGCM(block_key) if block_key else None
        self.max_age = max_age
        self.min_age = min_age
        self.max_length = max_length
        self.serializer = serializer or default_codec

    @property
    def encrypted(self) -> bool:
        return self._aead is not None

    def encode(self, name: str, value: Any) -> str:
        """Serialize, encrypt and authenticate *value* for the cookie *name*."""
        payload = self.serializer.dumps(value)
        if self._aead is not None:
            nonce = os.urandom(_NONCE_SIZE)
            payload = nonce + self._aead.encrypt(nonce, payload, name.encode())
        payload = _b64encode(payload)

        timestamp = str(int(time.time())).encode()
        mac = self._mac(name, timestamp, payload)
        encoded = _b64encode(b"|".join((timestamp, payload, mac))).decode("ascii")

        if self.max_length and len(encoded) > self.max_length:
            raise CookieValueTooLongException(
                f"Encoded value for '{name}' is {len(encoded)} bytes, limit is {self.max_length}",
                code="COOKIE_TOO_LONG",
            )
        return encoded

    def decode(self, name: str, value: str) -> Any:
        """Verify, decrypt and deserialize a value produced by :meth:`encode`."""
        if self.max_length and len(value) > self.max_length:
            raise CookieValueTooLongException(
                f"Value for '{name}' exceeds {self.max_length} bytes", code="COOKIE_TOO_LONG"
            )

        parts = _b64decode(value.encode("ascii", errors="replace")).split(b"|", 2)
        if len(parts) != 3:
            raise InvalidMacException("Invalid value format", code="COOKIE_FORMAT")
        timestamp, payload, mac = parts

        if not hmac.compare_digest(mac, self._mac(name, timestamp, payload)):
            raise InvalidMacException(f"The value of '{name}' is not valid", code="COOKIE_MAC")

        try:
            issued = int(timestamp)
        except ValueError as exc:
            raise InvalidMacException("Invalid timestamp", code="COOKIE_FORMAT") from exc
        now = int(time.time())
        if self.min_age and issued > now - self.min_age:
            raise CookieExpiredException("Timestamp is too new", code="COOKIE_TOO_NEW")
        if self.max_age and issued < now - self.max_age:
            raise CookieExpiredException("Expired timestamp", code="COOKIE_EXPIRED")

        data = _b64decode(payload)
        if self._aead is not None:
            if len(data) <= _NONCE_SIZE:
                raise CookieCodecException("Encrypted value is too short", code="COOKIE_DECRYPT")
            try:
                data = self._aead.decrypt(data[:_NONCE_SIZE], data[_NONCE_SIZE:], name.encode())
            except InvalidTag as exc:
                raise CookieCodecException("The value could not be decrypted", code="COOKIE_DECRYPT") from exc

        return self.serializer.loads(data)

    def _mac(self, name: str, timestamp: bytes, payload: bytes) -> bytes:
        message = b"|".join((name.encode(), timestamp, payload))
        return hmac.new(self._hash_key, message, hashlib.sha256).digest()


def codecs_from_pairs(
    *keys: bytes | None,
    max_age: int = DEFAULT_MAX_AGE,
    max_length: int = DEFAULT_MAX_LENGTH,
    serializer: ValueCodec | None = None,
) -> list[SecureCookie]:
    """Build codecs from alternating hash and block keys.

    Keys are read in ``(hash_key, block_key)`` pairs; the block key of each
    pair is optional (``None`` or empty disables encryption), and a trailing
    hash key without a block key is allowed.
    """
    codecs: list[SecureCookie] = []
    for i in range(0, len(keys), 2):
        hash_key = keys[i]
        block_key = keys[i + 1] if i + 1 < len(keys) else None
        codecs.append(
            SecureCookie(
                hash_key or b"",
                block_key or None,
                max_age=max_age,
                max_length=max_length,
                serializer=serializer,
            )
        )
    return codecs


def encode_multi(name: str, value: Any, codecs: Sequence[SecureCookie]) -> str:
    """Encode *value* with the first codec that succeeds.

    Raises:
        MultiError: If no codec is configured or every codec failed.
    """
    if not codecs:
        raise MultiError([CookieCodecException("No codecs were provided", code="COOKIE_NO_CODECS")])
    errors: list[Exception] = []
    for codec in codecs:
        try:
            return codec.encode(name, value)
        except CookieCodecException as exc:
            errors.append(exc)
    raise MultiError(errors)


def decode_multi(name: str, value: str, codecs: Sequence[SecureCookie]) -> Any:
    """Decode *value* with the first codec that accepts it.

    Trying codecs in order lets values written with an older key pair be
    read while new values are always written with the first pair.

    Raises:
        MultiError: If no codec is configured or every codec rejected the value.
    """
    if not codecs:
        raise MultiError([CookieCodecException("No codecs were provided", code="COOKIE_NO_CODECS")])
    errors: list[Exception] = []
    for codec in codecs:
        try:
            return codec.decode(name, value)
        except CookieCodecException as exc:
            errors.append(exc)
    raise MultiError(errors)
