"""Pydantic models for RentalConnects chat encryption."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Fields of an encrypted message envelope (base64 already applied)."""

    tag: str
    algorithm: str
    iv: str
    ciphertext: str


class DecryptOutcome(BaseModel):
    """Result of a single decryption attempt."""

    ok: bool
    # Non-string payloads are carried back as-is
    text: Any
    error: Optional[str] = None


# Response models


class PassphraseSetResponse(BaseModel):
    """Response from chat_passphrase_set."""

    success: bool
    enabled: bool


class PassphraseStatusResponse(BaseModel):
    """Response from chat_passphrase_status."""

    success: bool
    enabled: bool
    storage_key: str


class EncryptResponse(BaseModel):
    """Response from chat_encrypt."""

    success: bool
    encrypted: bool
    payload: str


class DecryptResponse(BaseModel):
    """Response from chat_decrypt."""

    success: bool
    decrypted: bool
    text: Any


class DecryptMessagesResponse(BaseModel):
    """Response from chat_decrypt_messages."""

    success: bool
    count: int
    messages: list[dict[str, Any]] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error response."""

    success: bool = False
    error: str
