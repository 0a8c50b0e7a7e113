"""Bearer token utilities for group administrators."""

import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple

from zkcred.config import get_settings


def create_access_token(identity: str,
                        expires_delta: Optional[timedelta] = None) -> Tuple[str, datetime]:
    """
    Create a JWT access token for an admin identity.

    The identity is carried in the ``sub`` claim and is what the registry
    compares against a group's admin.

    Returns:
        tuple: (token, expiry_datetime)
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.access_token_expire_hours)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    to_encode = {
        "sub": identity,
        "exp": expire,
        "iat": now,
    }

    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt, expire


def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a JWT access token.

    Returns:
        Dictionary with token payload if valid, None if invalid/expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    if not isinstance(payload.get("sub"), str) or not payload["sub"]:
        return None
    return payload

