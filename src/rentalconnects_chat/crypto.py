"""Passphrase-based encryption for chat message payloads.

Keys come from PBKDF2-HMAC-SHA256 over the passphrase with an application-wide
salt; messages are AES-256-CBC with a random IV per message. Non-envelope
payloads and anything that fails to decrypt are handed back unchanged, so a
conversation always renders something.
"""

import logging
import os
from typing import Optional

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .envelope import IV_SIZE, format_envelope, is_envelope, parse_envelope
from .models import DecryptOutcome

logger = logging.getLogger(__name__)

# Versioned constants: changing either makes every existing envelope undecryptable.
PBKDF2_SALT = b"rentalconnects.chat.v1"
PBKDF2_ITERATIONS = 1000
KEY_LENGTH = 32


class MessageCodec:
    """Encrypts and decrypts chat messages under a passphrase-derived key.

    The salt and iteration count are fixed per instance. The module-level
    functions use a codec built from the production constants.
    """

    def __init__(self, salt: bytes = PBKDF2_SALT, iterations: int = PBKDF2_ITERATIONS):
        self.salt = salt
        self.iterations = iterations

    def derive_key(self, passphrase: Optional[str]) -> Optional[bytes]:
        """Derive a 256-bit AES key, or None when there is no passphrase."""
        if not passphrase:
            return None
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=self.salt,
            iterations=self.iterations,
        )
        return kdf.derive(passphrase.encode("utf-8"))

    def encrypt(self, plain_text: str, passphrase: Optional[str]) -> str:
        """Encrypt plain_text into an envelope.

        Returns "" for empty text and the text itself when no passphrase is
        set. Errors from the OS random source propagate.
        """
        if not plain_text:
            return ""
        key = self.derive_key(passphrase)
        if key is None:
            return plain_text

        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plain_text.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return format_envelope(iv, ciphertext)

    def try_decrypt(self, payload, passphrase: Optional[str]) -> DecryptOutcome:
        """Attempt decryption, reporting what happened instead of raising.

        On every failure path the outcome carries payload unchanged, whatever its type.
        """
        if not payload or not isinstance(payload, str):
            return DecryptOutcome(ok=False, text=payload, error="empty or non-string payload")
        if not is_envelope(payload):
            return DecryptOutcome(ok=False, text=payload, error="not an envelope")

        key = self.derive_key(passphrase)
        if key is None:
            return DecryptOutcome(ok=False, text=payload, error="no passphrase")

        try:
            iv, ciphertext = parse_envelope(payload)
            decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            text = (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
        except ValueError as e:
            # EnvelopeError, bad padding and UnicodeDecodeError are all ValueErrors
            logger.warning("decrypt_message failed: %s", e)
            return DecryptOutcome(ok=False, text=payload, error=str(e))

        if not text:
            logger.warning("decrypt_message failed: empty plaintext")
            return DecryptOutcome(ok=False, text=payload, error="empty plaintext")

        return DecryptOutcome(ok=True, text=text)

    def decrypt(self, payload, passphrase: Optional[str]):
        """Decrypt an envelope, or return payload unchanged if that is not possible."""
        return self.try_decrypt(payload, passphrase).text


default_codec = MessageCodec()


def derive_key(passphrase: Optional[str]) -> Optional[bytes]:
    """Derive the chat key for passphrase using the application constants."""
    return default_codec.derive_key(passphrase)


def encrypt_message(plain_text: str, passphrase: Optional[str]) -> str:
    """Encrypt a chat message. See MessageCodec.encrypt."""
    return default_codec.encrypt(plain_text, passphrase)


def decrypt_message(payload, passphrase: Optional[str]):
    """Decrypt a chat message created by encrypt_message.

    Legacy plaintext passes through untouched. Decryption failures are
    logged and the original payload is returned.
    """
    return default_codec.decrypt(payload, passphrase)
