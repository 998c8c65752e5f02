"""MCP server for RentalConnects chat encryption."""

import logging
import os
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from . import crypto
from . import inbox
from .passphrase import STORAGE_KEY, load_passphrase, save_passphrase
from .models import (
    DecryptMessagesResponse,
    DecryptResponse,
    EncryptResponse,
    ErrorResponse,
    PassphraseSetResponse,
    PassphraseStatusResponse,
)

logger = logging.getLogger(__name__)

app = Server("rentalconnects-chat")

_PASSPHRASE_PROPERTY = {
    "type": "string",
    "description": "Chat passphrase (default: the stored passphrase)",
}


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="chat_passphrase_set",
            description="""Store the chat passphrase on this machine.

An empty passphrase clears it and disables encryption.
The passphrase is shared with other participants out-of-band.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "passphrase": {
                        "type": "string",
                        "description": "New passphrase, or empty to clear",
                    },
                },
                "required": ["passphrase"],
            },
        ),
        Tool(
            name="chat_passphrase_status",
            description="Report whether a chat passphrase is stored. Never returns the passphrase.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="chat_encrypt",
            description="""Encrypt a chat message for the transport.

Returns an rc::aes256:: envelope, or the text unchanged when no
passphrase is available.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "text": {
                        "type": "string",
                        "description": "Message text",
                    },
                    "passphrase": _PASSPHRASE_PROPERTY,
                },
                "required": ["text"],
            },
        ),
        Tool(
            name="chat_decrypt",
            description="""Decrypt a chat payload.

Plaintext messages pass through. If decryption fails (wrong passphrase,
corrupted envelope) the payload is returned unchanged.""",
            inputSchema={
                "type": "object",
                "properties": {
                    "payload": {
                        "type": "string",
                        "description": "Payload received from the transport",
                    },
                    "passphrase": _PASSPHRASE_PROPERTY,
                },
                "required": ["payload"],
            },
        ),
        Tool(
            name="chat_decrypt_messages",
            description="Decrypt the \"message\" field of every message in a conversation.",
            inputSchema={
                "type": "object",
                "properties": {
                    "messages": {
                        "type": "array",
                        "items": {"type": "object"},
                        "description": "Message objects from the messages API",
                    },
                    "passphrase": _PASSPHRASE_PROPERTY,
                },
                "required": ["messages"],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "chat_passphrase_set":
            result = await handle_chat_passphrase_set(arguments)
        elif name == "chat_passphrase_status":
            result = await handle_chat_passphrase_status()
        elif name == "chat_encrypt":
            result = await handle_chat_encrypt(arguments)
        elif name == "chat_decrypt":
            result = await handle_chat_decrypt(arguments)
        elif name == "chat_decrypt_messages":
            result = await handle_chat_decrypt_messages(arguments)
        else:
            result = ErrorResponse(error=f"Unknown tool: {name}")

        return [TextContent(type="text", text=result.model_dump_json(indent=2))]

    except Exception as e:
        logger.exception("Tool %s failed", name)
        error = ErrorResponse(error=str(e))
        return [TextContent(type="text", text=error.model_dump_json(indent=2))]


def _passphrase(args: dict) -> str:
    """Explicit passphrase argument, else the stored one."""
    if "passphrase" in args:
        return args["passphrase"] or ""
    return load_passphrase()


async def handle_chat_passphrase_set(args: dict) -> PassphraseSetResponse:
    """Handle chat_passphrase_set tool."""
    passphrase = args.get("passphrase", "")
    save_passphrase(passphrase)
    return PassphraseSetResponse(success=True, enabled=inbox.encryption_enabled(passphrase))


async def handle_chat_passphrase_status() -> PassphraseStatusResponse:
    """Handle chat_passphrase_status tool."""
    return PassphraseStatusResponse(
        success=True,
        enabled=inbox.encryption_enabled(load_passphrase()),
        storage_key=STORAGE_KEY,
    )


async def handle_chat_encrypt(args: dict) -> EncryptResponse:
    """Handle chat_encrypt tool."""
    text = args["text"]
    payload = inbox.prepare_outgoing(text, _passphrase(args))
    return EncryptResponse(success=True, encrypted=payload != text, payload=payload)


async def handle_chat_decrypt(args: dict) -> DecryptResponse:
    """Handle chat_decrypt tool."""
    outcome = crypto.default_codec.try_decrypt(args["payload"], _passphrase(args))
    return DecryptResponse(success=True, decrypted=outcome.ok, text=outcome.text)


async def handle_chat_decrypt_messages(args: dict) -> DecryptMessagesResponse:
    """Handle chat_decrypt_messages tool."""
    messages = inbox.decrypt_messages(args["messages"], _passphrase(args))
    return DecryptMessagesResponse(success=True, count=len(messages), messages=messages)


def main():
    """Run the MCP server."""
    import asyncio

    # stdout carries the MCP stream
    logging.basicConfig(
        stream=sys.stderr,
        level=os.environ.get("RENTALCONNECTS_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    async def run():
        async with stdio_server() as (read_stream, write_stream):
            await app.run(read_stream, write_stream, app.create_initialization_options())

    asyncio.run(run())


if __name__ == "__main__":
    main()
