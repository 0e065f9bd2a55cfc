"""Ember Ascent - Services initialization."""
from ember_ascent.services.auth import (
    AuthService,
    AuthenticationError,
    InvalidCredentialsError,
    AccountLockedError,
    TokenError,
)

__all__ = [
    "AuthService",
    "AuthenticationError",
    "InvalidCredentialsError",
    "AccountLockedError",
    "TokenError",
]
