"""Wire format for encrypted chat messages.

An envelope looks like ``rc::aes256::<iv-base64>::<ciphertext-base64>``.
The transport must treat it as an opaque string.
"""

import base64
import binascii

from .models import Envelope

TAG = "rc"
ALGORITHM = "aes256"
DELIMITER = "::"

# Anything not starting with this is a legacy/plaintext message
TAG_PREFIX = TAG + DELIMITER

IV_SIZE = 16
BLOCK_SIZE = 16


class EnvelopeError(ValueError):
    """Payload carries the envelope tag but cannot be decoded."""


def is_envelope(payload) -> bool:
    """Check whether payload claims to be one of our envelopes."""
    return isinstance(payload, str) and payload.startswith(TAG_PREFIX)


def format_envelope(iv: bytes, ciphertext: bytes) -> str:
    """Build the envelope string for an IV and ciphertext."""
    envelope = Envelope(
        tag=TAG,
        algorithm=ALGORITHM,
        iv=base64.b64encode(iv).decode("ascii"),
        ciphertext=base64.b64encode(ciphertext).decode("ascii"),
    )
    return DELIMITER.join((envelope.tag, envelope.algorithm, envelope.iv, envelope.ciphertext))


def _b64decode(field: str, name: str) -> bytes:
    try:
        return base64.b64decode(field.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise EnvelopeError(f"Invalid base64 in {name}: {e}") from e


def parse_envelope(payload: str) -> tuple[bytes, bytes]:
    """Split an envelope into (iv, ciphertext).

    Raises:
        EnvelopeError: Wrong field count, unknown tag or algorithm,
            bad base64, or sizes that cannot be AES-CBC output.
    """
    fields = payload.split(DELIMITER)
    if len(fields) != 4:
        raise EnvelopeError(f"Expected 4 fields, got {len(fields)}")

    tag, algorithm, iv_b64, ct_b64 = fields
    if tag != TAG:
        raise EnvelopeError(f"Unknown tag: {tag!r}")
    if algorithm != ALGORITHM:
        raise EnvelopeError(f"Unsupported algorithm: {algorithm!r}")

    iv = _b64decode(iv_b64, "iv")
    ciphertext = _b64decode(ct_b64, "ciphertext")

    if len(iv) != IV_SIZE:
        raise EnvelopeError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")
    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise EnvelopeError(f"Ciphertext length {len(ciphertext)} is not a whole number of blocks")

    return iv, ciphertext
