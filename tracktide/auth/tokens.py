"""Signed bearer tokens carrying the user id."""

from __future__ import annotations

from typing import Optional

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(
        current_app.config["SECRET_KEY"],
        salt=current_app.config.get("TOKEN_SALT", "tracktide-auth"),
    )


def issue_token(user_id: int) -> str:
    return _serializer().dumps({"userId": user_id})


def verify_token(token: str) -> Optional[int]:
    """Return the user id for a valid, unexpired token, else None."""
    if not token:
        return None
    max_age = int(current_app.config.get("TOKEN_MAX_AGE_SECONDS", 7 * 24 * 3600))
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        current_app.logger.info("Rejected expired bearer token")
        return None
    except BadSignature:
        return None
    try:
        return int(data.get("userId"))
    except (AttributeError, TypeError, ValueError):
        return None


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    if not header_value:
        return None
    scheme, _, token = header_value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


__all__ = ["issue_token", "verify_token", "bearer_token"]
