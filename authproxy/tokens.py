"""
Session token codec.

Tokens are the unsigned string ``dummy_jwt_token_for_<contact_id>``. They
carry no signature and no expiry: the embedded contact id is trusted until
an upstream lookup says otherwise.
"""

from __future__ import annotations

from typing import Optional

TOKEN_PREFIX = "dummy_jwt_token_for_"
BEARER_SCHEME = "Bearer "


class InvalidTokenError(ValueError):
    """Raised when a header or token does not follow the session scheme."""


def encode_token(contact_id: str) -> str:
    if not contact_id:
        raise ValueError("contact_id must be non-empty")
    return f"{TOKEN_PREFIX}{contact_id}"


def is_recognized_token(token: Optional[str]) -> bool:
    return bool(token) and token.startswith(TOKEN_PREFIX) and len(token) > len(
        TOKEN_PREFIX
    )


def decode_token(token: Optional[str]) -> str:
    """
    Return the contact id embedded in ``token``.

    Everything after the prefix is the id, so ids containing underscores
    come back unchanged.
    """
    if not is_recognized_token(token):
        raise InvalidTokenError("Invalid token")
    return token[len(TOKEN_PREFIX):]


def parse_authorization_header(value: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not value or not value.startswith(BEARER_SCHEME):
        raise InvalidTokenError("Authorization token required")
    token = value[len(BEARER_SCHEME):].strip()
    if not token:
        raise InvalidTokenError("Authorization token required")
    return token
