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
"""Tests for FilesystemStore — session values in files, signed ID in the cookie."""

import pytest
from pydantic import BaseModel

from flysession.kernel.exceptions import SessionDecodeException
from flysession.session.adapters.filesystem import FilesystemStore, generate_session_id
from flysession.session.codec.securecookie import encode_multi
from flysession.session.codec.values import ValueCodec
from flysession.session.context import SessionContext
from flysession.session.options import SessionOptions
from flysession.session.ports.outbound import SessionStore

HASH_KEY = b"h" * 32


@pytest.fixture
def store(tmp_path):
    return FilesystemStore(tmp_path, HASH_KEY)


class TestFilesystemStore:
    def test_satisfies_protocol(self, store):
        assert isinstance(store, SessionStore)

    def test_generated_ids_are_unique_and_alphanumeric(self):
        ids = {generate_session_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(i.isalnum() for i in ids)

    @pytest.mark.asyncio
    async def test_save_writes_file_and_signed_id_cookie(self, store, tmp_path):
        ctx = SessionContext()
        session = await store.new(ctx, "app")
        session.values["name"] = "Gem"
        await store.save(ctx, session)

        assert session.id
        assert (tmp_path / f"session_{session.id}").is_file()
        cookie = ctx.outbound_cookies[0]
        assert cookie.name == "app"
        assert session.id not in cookie.value

    @pytest.mark.asyncio
    async def test_values_survive_next_request(self, store):
        ctx = SessionContext()
        session = await store.new(ctx, "app")
        session.values.update({"name": "Gem", 42: 43, "big": "x" * 10_000})
        await store.save(ctx, session)

        next_ctx = SessionContext(cookies={"app": ctx.outbound_cookies[0].value})
        restored = await store.new(next_ctx, "app")
        assert restored.is_new is False
        assert restored.id == session.id
        assert restored.values == session.values

    @pytest.mark.asyncio
    async def test_missing_file_falls_back_to_new_session(self, store, tmp_path):
        ctx = SessionContext()
        session = await store.new(ctx, "app")
        await store.save(ctx, session)
        (tmp_path / f"session_{session.id}").unlink()

        next_ctx = SessionContext(cookies={"app": ctx.outbound_cookies[0].value})
        with pytest.raises(SessionDecodeException) as exc_info:
            await store.new(next_ctx, "app")
        fallback = exc_info.value.session
        assert fallback.is_new is True
        assert fallback.id == ""
        assert fallback.values == {}

    @pytest.mark.asyncio
    async def test_forged_id_is_rejected(self, store):
        forged = encode_multi("app", "../../etc/passwd", store.codecs)
        with pytest.raises(SessionDecodeException):
            await store.new(SessionContext(cookies={"app": forged}), "app")

    @pytest.mark.asyncio
    async def test_negative_max_age_erases_file(self, store, tmp_path):
        ctx = SessionContext()
        session = await store.new(ctx, "app")
        await store.save(ctx, session)
        path = tmp_path / f"session_{session.id}"
        assert path.exists()

        session.options = SessionOptions(max_age=-1)
        delete_ctx = SessionContext()
        await store.save(delete_ctx, session)
        assert not path.exists()
        cookie = delete_ctx.outbound_cookies[0]
        assert cookie.value == ""
        assert "expires=Thu, 01 Jan 1970" in cookie.header_value()

    @pytest.mark.asyncio
    async def test_save_twice_keeps_same_id(self, store, tmp_path):
        ctx = SessionContext()
        session = await store.new(ctx, "app")
        await store.save(ctx, session)
        first_id = session.id
        session.values["n"] = 2
        await store.save(ctx, session)
        assert session.id == first_id
        assert len(list(tmp_path.iterdir())) == 1

    def test_defaults_to_temp_dir(self):
        import tempfile
        from pathlib import Path

        assert FilesystemStore(None, HASH_KEY).path == Path(tempfile.gettempdir())


class ProfileV1(BaseModel):
    name: str


class ProfileV2(BaseModel):
    name: str
    age: int


@pytest.mark.asyncio
async def test_incompatible_stored_model_falls_back_to_new_session(tmp_path):
    old_codec = ValueCodec()
    old_codec.register(ProfileV1, name="Profile")
    new_codec = ValueCodec()
    new_codec.register(ProfileV2, name="Profile")

    writer = FilesystemStore(tmp_path, HASH_KEY, serializer=old_codec)
    ctx = SessionContext()
    session = await writer.new(ctx, "app")
    session.values["profile"] = ProfileV1(name="Gem")
    await writer.save(ctx, session)

    reader = FilesystemStore(tmp_path, HASH_KEY, serializer=new_codec)
    next_ctx = SessionContext(cookies={"app": ctx.outbound_cookies[0].value})
    with pytest.raises(SessionDecodeException) as exc_info:
        await reader.new(next_ctx, "app")
    fallback = exc_info.value.session
    assert fallback.is_new is True
    assert fallback.id == ""
    assert fallback.values == {}
