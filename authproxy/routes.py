"""
HTTP routes for the auth proxy.

Each route validates its input, resolves the caller from the bearer token
where required and makes one or two calls to the contact store.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from authproxy.config import Settings, get_settings
from authproxy.contacts import (
    DEFAULT_PLAN,
    Contact,
    ContactClient,
    CustomFieldIds,
    UpstreamError,
)
from authproxy.dependencies import get_contact_client, get_contact_id
from authproxy.errors import ApiError
from authproxy.schemas import (
    LoginRequest,
    LoginResponse,
    ResearchSaveResponse,
    SignupRequest,
    SignupResponse,
    SignupUser,
    SubscriptionResponse,
    UserResponse,
    UserSummary,
)
from authproxy.tokens import encode_token
from authproxy.validation import (
    sanitize_input,
    validate_email,
    validate_name,
    validate_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()

EXPIRED_TIER = "Expired"
PASSWORD_RULE = "Password must be between 6 and 128 characters"


def get_field_ids(settings: Settings = Depends(get_settings)) -> CustomFieldIds:
    return CustomFieldIds.from_settings(settings)


def _subscription_tier(contact: Contact, fields: CustomFieldIds) -> str:
    return contact.custom_field(fields.subscription_tier, DEFAULT_PLAN)


def _user_summary(contact: Contact, fields: CustomFieldIds) -> UserSummary:
    return UserSummary(
        id=contact.id,
        email=contact.email,
        name=contact.display_name,
        subscriptionTier=_subscription_tier(contact, fields),
    )


def _check_credentials(email: Any, password: Any) -> None:
    if not validate_email(email):
        raise ApiError(400, "Invalid email format")
    if not validate_password(password):
        raise ApiError(400, PASSWORD_RULE)


@router.post("/auth/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    contacts: ContactClient = Depends(get_contact_client),
    fields: CustomFieldIds = Depends(get_field_ids),
    settings: Settings = Depends(get_settings),
):
    """
    Log a user in, creating the contact on first login.
    """
    email = sanitize_input(payload.email)
    password = payload.password
    if not email or not password:
        raise ApiError(400, "Email and password are required")
    _check_credentials(email, password)

    try:
        contact = contacts.find_contact_by_email(email)
        if contact is None:
            contact = contacts.create_contact(email, password)
        elif settings.enforce_login_password:
            if contact.custom_field(fields.password) != password:
                raise ApiError(401, "Invalid email or password")
    except UpstreamError:
        raise ApiError(500, "Failed to log in")

    return LoginResponse(
        message="Login successful",
        token=encode_token(contact.id),
        user=_user_summary(contact, fields),
    )


@router.post("/auth/signup", response_model=SignupResponse)
def signup(
    payload: SignupRequest,
    contacts: ContactClient = Depends(get_contact_client),
):
    email = sanitize_input(payload.email)
    first_name = sanitize_input(payload.firstName)
    last_name = sanitize_input(payload.lastName)
    password = payload.password
    if not email or not password or not first_name or not last_name:
        raise ApiError(400, "All fields are required")
    _check_credentials(email, password)
    if not validate_name(first_name):
        raise ApiError(400, "First name must be at least 2 characters")
    if not validate_name(last_name):
        raise ApiError(400, "Last name must be at least 2 characters")
    plan = sanitize_input(payload.plan) or DEFAULT_PLAN

    try:
        contact = contacts.create_contact(email, password, first_name, last_name, plan)
    except UpstreamError as exc:
        if exc.is_client_error:
            raise ApiError(400, "Failed to create account. Email may already exist.")
        raise ApiError(500, "Internal server error")

    return SignupResponse(
        message="Account created successfully",
        user=SignupUser(
            id=contact.id,
            email=contact.email,
            firstName=contact.first_name,
            lastName=contact.last_name,
            name=f"{first_name} {last_name}",
        ),
    )


def _lookup_user(
    contacts: ContactClient, contact_id: str, not_found_message: str
) -> Contact:
    try:
        contact = contacts.get_contact_by_id(contact_id)
    except UpstreamError:
        raise ApiError(500, "Failed to load user")
    if contact is None:
        raise ApiError(401, not_found_message)
    return contact


@router.post(
    "/auth/verify", response_model=UserResponse, response_model_exclude_none=True
)
def verify(
    contact_id: str = Depends(get_contact_id),
    contacts: ContactClient = Depends(get_contact_client),
    fields: CustomFieldIds = Depends(get_field_ids),
):
    contact = _lookup_user(contacts, contact_id, "Invalid or expired token")
    return UserResponse(message="Token valid", user=_user_summary(contact, fields))


@router.get(
    "/user/info", response_model=UserResponse, response_model_exclude_none=True
)
def user_info(
    contact_id: str = Depends(get_contact_id),
    contacts: ContactClient = Depends(get_contact_client),
    fields: CustomFieldIds = Depends(get_field_ids),
):
    contact = _lookup_user(contacts, contact_id, "Invalid token or user not found")
    return UserResponse(user=_user_summary(contact, fields))


@router.post("/research/save", response_model=ResearchSaveResponse)
def save_research(
    research_data: Any = Body(default=None),
    contact_id: str = Depends(get_contact_id),
    contacts: ContactClient = Depends(get_contact_client),
):
    """
    Store the request body verbatim on the caller's contact.

    Bodies that are not JSON arrive as raw bytes and are refused.
    """
    if research_data is None or isinstance(research_data, (bytes, bytearray)):
        raise ApiError(400, "Research data is required")
    try:
        contact = contacts.update_contact_research_data(contact_id, research_data)
    except UpstreamError:
        raise ApiError(500, "Failed to save research data")
    return ResearchSaveResponse(message="Research data saved", contact=contact.as_dict())


@router.get("/subscription/check", response_model=SubscriptionResponse)
def check_subscription(
    contact_id: str = Depends(get_contact_id),
    contacts: ContactClient = Depends(get_contact_client),
    fields: CustomFieldIds = Depends(get_field_ids),
):
    try:
        contact = contacts.get_contact_by_id(contact_id)
    except UpstreamError:
        raise ApiError(500, "Failed to check subscription")
    if contact is None:
        raise ApiError(404, "Contact not found")
    tier = _subscription_tier(contact, fields)
    return SubscriptionResponse(valid=tier != EXPIRED_TIER, tier=tier)
