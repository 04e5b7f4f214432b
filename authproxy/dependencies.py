"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from authproxy.config import Settings
from authproxy.contacts import (
    ContactClient,
    CustomFieldIds,
    HighLevelContactClient,
    InMemoryContactClient,
)
from authproxy.errors import ApiError
from authproxy.tokens import InvalidTokenError, decode_token, parse_authorization_header


def build_contact_client(settings: Settings) -> ContactClient:
    if settings.use_in_memory_backends:
        return InMemoryContactClient(CustomFieldIds.from_settings(settings))
    return HighLevelContactClient.from_settings(settings)


def get_contact_client(request: Request) -> ContactClient:
    """
    Return the contact client built by the app factory, so one HTTP session
    is reused across requests.
    """
    return request.app.state.contact_client


def get_contact_id(authorization: Optional[str] = Header(default=None)) -> str:
    """Decode the bearer token into the contact id it names."""
    try:
        token = parse_authorization_header(authorization)
        return decode_token(token)
    except InvalidTokenError as exc:
        raise ApiError(401, str(exc)) from exc
