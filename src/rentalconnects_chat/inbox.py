"""Message-list helpers for the chat feature.

Every payload fetched from the messages API goes through decrypt before
display, and outgoing text is encrypted only when a passphrase is set.
"""

from typing import Any, Optional

from .crypto import decrypt_message, encrypt_message


def encryption_enabled(passphrase: Optional[str]) -> bool:
    """Encryption is on whenever a passphrase is configured."""
    return bool(passphrase)


def prepare_outgoing(text: str, passphrase: Optional[str]) -> str:
    """Payload to hand to the transport for text."""
    if not encryption_enabled(passphrase):
        return text
    return encrypt_message(text, passphrase)


def decrypt_messages(messages: list[dict[str, Any]], passphrase: Optional[str]) -> list[dict[str, Any]]:
    """Return copies of messages with their "message" field decrypted.

    Args:
        messages: Message dicts as returned by the messages API.
        passphrase: Chat passphrase, may be empty.

    Returns:
        New dicts; other fields are copied as-is. Messages that cannot be
        decrypted keep their original payload.
    """
    return [
        {**m, "message": decrypt_message(m.get("message"), passphrase)}
        for m in messages
    ]


def decrypt_sent(message: dict[str, Any], passphrase: Optional[str]) -> dict[str, Any]:
    """Decrypt the transport's echo of a sent message.

    Some backends return the body under "content" instead of "message".
    """
    body = message.get("message") or message.get("content")
    return {**message, "message": decrypt_message(body, passphrase)}
