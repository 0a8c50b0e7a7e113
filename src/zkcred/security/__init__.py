"""Security and authentication module."""

from zkcred.security.auth import (
    create_access_token,
    verify_access_token,
)

__all__ = [
    "create_access_token",
    "verify_access_token",
]
