"""
Argon2id hashing for passwords and security answers, plus the password policy.

Security answers go through the same hasher after trimming and lower-casing,
so "Rex" and " rex " verify against one stored hash.
"""

from __future__ import annotations

from collections.abc import Callable

import argon2
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=64 * 1024,
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)

SPECIAL_CHARACTERS = frozenset("@$!%*?&#^+=<>(){}[]|\\:\";',./_~`-")

# Character-class rules applied after the length checks
_CHARACTER_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (lambda pw: any(c.isupper() for c in pw), "an uppercase letter"),
    (lambda pw: any(c.islower() for c in pw), "a lowercase letter"),
    (lambda pw: any(c.isdigit() for c in pw), "a number"),
    (lambda pw: any(c in SPECIAL_CHARACTERS for c in pw), "a special character"),
)


class PasswordStrengthError(ValueError):
    """The password does not satisfy the policy."""


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True on match; False on mismatch or an unparseable stored hash."""
    try:
        return _hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """True when the stored hash predates the current hasher parameters."""
    return _hasher.check_needs_rehash(password_hash)


def _normalize_answer(answer: str) -> str:
    return answer.strip().lower()


def hash_security_answer(answer: str) -> str:
    return _hasher.hash(_normalize_answer(answer))


def validate_password_strength(password: str, min_length: int = 8, max_length: int = 128) -> None:
    """
    Enforce the registration and reset password policy.

    ``min_length`` to ``max_length`` characters containing at least one
    uppercase letter, lowercase letter, digit and special character.

    Raises:
        PasswordStrengthError: Naming the first rule that failed.
    """
    if not password or password.isspace():
        msg = "Password cannot be empty"
        raise PasswordStrengthError(msg)
    if not min_length <= len(password) <= max_length:
        msg = f"Password must be between {min_length} and {max_length} characters long"
        raise PasswordStrengthError(msg)
    for check, requirement in _CHARACTER_RULES:
        if not check(password):
            msg = f"Password must contain at least {requirement}"
            raise PasswordStrengthError(msg)
