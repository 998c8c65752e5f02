"""Tests for MCP server handlers."""

import json
import os
import tempfile
from pathlib import Path

import pytest

# Set test storage path before importing
_test_db = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
os.environ["RENTALCONNECTS_STORE"] = _test_db.name

from rentalconnects_chat import db
from rentalconnects_chat.crypto import encrypt_message
from rentalconnects_chat.server import (
    call_tool,
    handle_chat_decrypt,
    handle_chat_decrypt_messages,
    handle_chat_encrypt,
    handle_chat_passphrase_set,
    handle_chat_passphrase_status,
)


@pytest.fixture(autouse=True)
def reset_storage():
    os.environ["RENTALCONNECTS_STORE"] = _test_db.name
    db.clear()
    yield


@pytest.fixture(scope="module", autouse=True)
def cleanup_storage():
    yield
    Path(_test_db.name).unlink(missing_ok=True)


@pytest.mark.asyncio
class TestPassphraseHandlers:
    async def test_set_enables(self):
        result = await handle_chat_passphrase_set({"passphrase": "pw"})
        assert result.success is True
        assert result.enabled is True

        status = await handle_chat_passphrase_status()
        assert status.enabled is True
        assert status.storage_key == "rc.chat.passphrase"

    async def test_empty_clears(self):
        await handle_chat_passphrase_set({"passphrase": "pw"})
        result = await handle_chat_passphrase_set({"passphrase": ""})
        assert result.enabled is False

        status = await handle_chat_passphrase_status()
        assert status.enabled is False

    async def test_status_does_not_leak_passphrase(self):
        await handle_chat_passphrase_set({"passphrase": "hunter2"})
        status = await handle_chat_passphrase_status()
        assert "hunter2" not in status.model_dump_json()


@pytest.mark.asyncio
class TestEncryptDecryptHandlers:
    async def test_explicit_passphrase_round_trip(self):
        enc = await handle_chat_encrypt({"text": "Hello", "passphrase": "pw"})
        assert enc.encrypted is True
        assert enc.payload.startswith("rc::aes256::")

        dec = await handle_chat_decrypt({"payload": enc.payload, "passphrase": "pw"})
        assert dec.decrypted is True
        assert dec.text == "Hello"

    async def test_stored_passphrase_used_by_default(self):
        await handle_chat_passphrase_set({"passphrase": "stored"})
        enc = await handle_chat_encrypt({"text": "Hello"})
        assert enc.encrypted is True

        dec = await handle_chat_decrypt({"payload": enc.payload, "passphrase": "stored"})
        assert dec.text == "Hello"

    async def test_no_passphrase_returns_plaintext(self):
        enc = await handle_chat_encrypt({"text": "Hello"})
        assert enc.encrypted is False
        assert enc.payload == "Hello"

    async def test_wrong_passphrase_returns_payload(self):
        cipher = encrypt_message("Hello", "right")
        dec = await handle_chat_decrypt({"payload": cipher, "passphrase": "wrong"})
        assert dec.success is True
        assert dec.decrypted is False
        assert dec.text == cipher

    async def test_plaintext_passes_through(self):
        dec = await handle_chat_decrypt({"payload": "just text", "passphrase": "pw"})
        assert dec.decrypted is False
        assert dec.text == "just text"

    async def test_decrypt_messages(self):
        messages = [
            {"id": 1, "message": encrypt_message("one", "pw")},
            {"id": 2, "message": "two"},
        ]
        result = await handle_chat_decrypt_messages({"messages": messages, "passphrase": "pw"})
        assert result.count == 2
        assert [m["message"] for m in result.messages] == ["one", "two"]


@pytest.mark.asyncio
class TestCallTool:
    async def test_dispatch(self):
        contents = await call_tool("chat_encrypt", {"text": "Hi", "passphrase": "pw"})
        data = json.loads(contents[0].text)
        assert data["success"] is True
        assert data["payload"].startswith("rc::aes256::")

    async def test_decrypt_non_string_payload_passes_through(self):
        contents = await call_tool("chat_decrypt", {"payload": 42, "passphrase": "pw"})
        data = json.loads(contents[0].text)
        assert data["success"] is True
        assert data["decrypted"] is False
        assert data["text"] == 42

    async def test_unknown_tool(self):
        contents = await call_tool("chat_nope", {})
        data = json.loads(contents[0].text)
        assert data["success"] is False
        assert "Unknown tool" in data["error"]

    async def test_missing_argument_becomes_error(self):
        contents = await call_tool("chat_encrypt", {})
        data = json.loads(contents[0].text)
        assert data["success"] is False
