"""
Password policy - validation and Argon2id hashing.

Rules, checked in order (first failure wins):
1. not empty
2. 10 to 40 characters
3. at least two ASCII uppercase letters
4. at least two ASCII digits
5. at least two characters that are neither letters nor digits
"""

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from .exceptions import EmptyPassword, InvalidPassword, PasswordVerificationFailed

MIN_PASSWORD_LENGTH = 10
MAX_PASSWORD_LENGTH = 40

# Argon2id with m=19 MiB, t=2, p=1 (OWASP baseline). Every call draws a
# fresh 16-byte salt from os.urandom.
ARGON2_TIME_COST = 2
ARGON2_MEMORY_COST = 19456
ARGON2_PARALLELISM = 1
ARGON2_HASH_LEN = 32
ARGON2_SALT_LEN = 16

_hasher = PasswordHasher(
    time_cost=ARGON2_TIME_COST,
    memory_cost=ARGON2_MEMORY_COST,
    parallelism=ARGON2_PARALLELISM,
    hash_len=ARGON2_HASH_LEN,
    salt_len=ARGON2_SALT_LEN,
    type=Type.ID,
)


class Password:
    """A password that passed the policy. Never renders its value."""

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value

    def reveal(self) -> str:
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Password):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return "******"

    def __repr__(self) -> str:
        return "Password('******')"


def validate_and_wrap(raw: str) -> Password:
    """
    Validate a raw password against the policy.

    Raises:
        EmptyPassword: If the password is empty
        InvalidPassword: If any other rule fails, with a client-safe reason
    """
    if not raw:
        raise EmptyPassword()
    if not MIN_PASSWORD_LENGTH <= len(raw) <= MAX_PASSWORD_LENGTH:
        raise InvalidPassword(
            "password length must be at least 10 characters and at most 40 characters"
        )

    uppercase_count = 0
    digit_count = 0
    special_count = 0
    for char in raw:
        if char.isascii() and char.isupper():
            uppercase_count += 1
        elif char.isascii() and char.isdigit():
            digit_count += 1
        elif not (char.isascii() and char.isalnum()):
            special_count += 1

    if uppercase_count < 2:
        raise InvalidPassword("password must contain at least two uppercase letters")
    if digit_count < 2:
        raise InvalidPassword("password must contain at least two numbers")
    if special_count < 2:
        raise InvalidPassword("password must contain at least two special characters")

    return Password(raw)


def hash_password(password: Password) -> str:
    """Hash a password with Argon2id and return the encoded hash string."""
    return _hasher.hash(password.reveal())


def verify_password(password: Password | str, stored_hash: str) -> None:
    """
    Verify a password against an encoded Argon2 hash.

    Raises:
        PasswordVerificationFailed: On mismatch or unreadable hash, without
            telling which
    """
    raw = password.reveal() if isinstance(password, Password) else password
    try:
        _hasher.verify(stored_hash, raw)
    except (VerificationError, InvalidHashError):
        raise PasswordVerificationFailed("password verification failed") from None
