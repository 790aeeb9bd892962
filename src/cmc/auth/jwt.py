"""
RS256 session tokens.

Tokens are stateless: logout does not revoke them, they simply expire. The
``role`` claim is informational only; authorization re-reads the user row on
every request, so role and activation changes apply immediately.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, NamedTuple

import jwt

from cmc.config import get_settings

_REQUIRED_CLAIMS = ["exp", "iat", "iss", "sub"]


class SigningKeys(NamedTuple):
    private: str
    public: str


@lru_cache(maxsize=1)
def _signing_keys() -> SigningKeys:
    settings = get_settings()
    return SigningKeys(
        private=Path(settings.jwt_private_key_path).read_text(),
        public=Path(settings.jwt_public_key_path).read_text(),
    )


def reset_keys() -> None:
    """Forget the cached key pair so the next call re-reads the configured paths."""
    _signing_keys.cache_clear()


def create_access_token(user_id: str, role: str = "user") -> str:
    """Sign a session token for ``user_id``, valid for the configured lifetime."""
    settings = get_settings()
    issued_at = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "iss": settings.jwt_issuer,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_access_token_expire_minutes),
    }
    return jwt.encode(claims, _signing_keys().private, algorithm=settings.jwt_algorithm)


def verify_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Decode ``token`` and check signature, issuer, expiry and token type.

    Raises:
        jwt.InvalidTokenError: On any failure; expiry included.
    """
    settings = get_settings()
    claims: dict[str, Any] = jwt.decode(
        token,
        _signing_keys().public,
        algorithms=[settings.jwt_algorithm],
        issuer=settings.jwt_issuer,
        options={"require": _REQUIRED_CLAIMS},
    )
    if claims.get("type") != expected_type:
        msg = f"Wrong token type: {claims.get('type')!r}"
        raise jwt.InvalidTokenError(msg)
    return claims
