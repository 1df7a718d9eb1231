"""
Verification secret codec - email-bound one-time secrets.

A secret is a random 8-digit code sent to the account holder. It is never
stored; instead the caller persists an opaque ciphertext that lets a later
request prove knowledge of the secret for one specific email:

    key        = Argon2id(secret, random 16-byte salt)   # encoded record
    mac        = HMAC-SHA3-256(raw digest of key, email)
    ciphertext = base64_nopad(encoded record (97 bytes) || mac (32 bytes))

Ciphertext layout is fixed-width and must stay stable: records written by
one release have to verify on the next.

The Argon2 input is the secret as typed: its eight ASCII digits, leading
zeros included. It is not the code as an integer, so ciphertexts from a
system that hashes the integer (for example its little-endian bytes) do
not verify here, and ours do not verify there.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import secrets

from argon2.exceptions import InvalidHashError, VerificationError

from .exceptions import InvalidVerificationSecret
from .passwords import _hasher

logger = logging.getLogger(__name__)

SECRET_DIGITS = 8

# "$argon2id$v=19$m=19456,t=2,p=1$" + 22 chars of salt + "$" + 43 chars of digest
ENCODED_KEY_LENGTH = 97
MAC_LENGTH = 32
CIPHERTEXT_LENGTH = ENCODED_KEY_LENGTH + MAC_LENGTH


def _b64encode_nopad(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii").rstrip("=")


def _b64decode_nopad(data: str) -> bytes:
    padded = data + "=" * (-len(data) % 4)
    return base64.b64decode(padded.encode("ascii"), validate=True)


def _raw_digest(encoded_key: str) -> bytes:
    """Extract the raw Argon2 digest from its encoded record."""
    return _b64decode_nopad(encoded_key.rsplit("$", 1)[1])


def _mac(digest: bytes, email: str) -> bytes:
    return hmac.new(digest, email.encode("utf-8"), hashlib.sha3_256).digest()


def generate_secret() -> str:
    """Draw a fresh zero-padded 8-digit code from the OS CSPRNG."""
    return f"{secrets.randbelow(10**SECRET_DIGITS):0{SECRET_DIGITS}d}"


def generate(email: str) -> tuple[str, str]:
    """
    Generate a verification secret bound to ``email``.

    Args:
        email: Normalized email address the secret is bound to

    Returns:
        Tuple of (plaintext secret, ciphertext to persist)
    """
    secret = generate_secret()
    encoded_key = _hasher.hash(secret)
    encoded_bytes = encoded_key.encode("ascii")
    if len(encoded_bytes) != ENCODED_KEY_LENGTH:
        raise RuntimeError(
            f"unexpected Argon2 record length: {len(encoded_bytes)} != {ENCODED_KEY_LENGTH}"
        )

    mac = _mac(_raw_digest(encoded_key), email)
    return secret, _b64encode_nopad(encoded_bytes + mac)


def verify(secret: str, email: str, ciphertext: str) -> None:
    """
    Verify that ``secret`` was generated for ``email``.

    Both the Argon2 record and the email MAC must match. Every failure,
    from a malformed ciphertext to a wrong secret, raises the same error.

    Raises:
        InvalidVerificationSecret: If the secret does not verify
    """
    try:
        raw = _b64decode_nopad(ciphertext)
        if len(raw) != CIPHERTEXT_LENGTH:
            raise ValueError(f"expected {CIPHERTEXT_LENGTH} bytes, got {len(raw)}")
        encoded_key = raw[:ENCODED_KEY_LENGTH].decode("ascii")
        stored_mac = raw[ENCODED_KEY_LENGTH:]

        _hasher.verify(encoded_key, secret)
        expected_mac = _mac(_raw_digest(encoded_key), email)
    except (ValueError, binascii.Error, IndexError, VerificationError, InvalidHashError) as e:
        logger.warning("Verification secret rejected: %s", type(e).__name__)
        raise InvalidVerificationSecret() from None

    if not hmac.compare_digest(expected_mac, stored_mac):
        logger.warning("Verification secret rejected: email mismatch")
        raise InvalidVerificationSecret()
