"""Helpers for issuing and verifying bearer tokens."""

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from goalmates.config import get_settings
from goalmates.utils import utc_now

ALGORITHM = "HS256"

settings = get_settings()


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    expire = utc_now() + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode({**data, "exp": expire}, settings.secret_key, algorithm=ALGORITHM)


def create_user_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Return a token whose subject is ``user_id``."""

    return create_access_token({"sub": str(user_id)}, expires_delta)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def decode_user_id(token: str) -> int:
    """Verify ``token`` and return the user id it carries.

    The identifier is read from ``sub`` and falls back to a ``user_id`` claim.
    Raises ``ValueError`` when the token is invalid, expired or carries no
    integer identifier.
    """

    payload = decode_access_token(token)
    raw_id = payload.get("sub")
    if raw_id is None:
        raw_id = payload.get("user_id")
    if raw_id is None or isinstance(raw_id, bool):
        raise ValueError("Token does not identify a user")
    try:
        return int(raw_id)
    except (TypeError, ValueError) as exc:
        raise ValueError("Token does not identify a user") from exc
