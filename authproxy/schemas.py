"""
Pydantic schemas for the auth proxy's JSON envelopes.

Request fields are optional so the routes can answer missing values with
their own 400 messages instead of a generic validation error.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SignupRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    plan: Optional[str] = None


class UserSummary(BaseModel):
    id: str
    email: Optional[str] = None
    name: str
    subscriptionTier: str


class SignupUser(BaseModel):
    id: str
    email: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    name: str


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    user: UserSummary


class SignupResponse(BaseModel):
    success: bool = True
    message: str
    user: SignupUser


class UserResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserSummary


class ResearchSaveResponse(BaseModel):
    success: bool = True
    message: str
    contact: dict[str, Any]


class SubscriptionResponse(BaseModel):
    success: bool = True
    valid: bool
    tier: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
