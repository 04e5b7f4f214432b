"""
Contact client for the HighLevel contacts API and an in-memory test double.

HighLevel contacts stand in for user accounts: the password, subscription
tier and saved research live in contact custom fields.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote

import requests

from authproxy.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_PLAN = "Individual"


class UpstreamError(Exception):
    """The contacts API could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


@dataclass
class Contact:
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    custom_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Optional[dict]) -> Optional["Contact"]:
        if not payload or not payload.get("id"):
            return None
        return cls(
            id=str(payload["id"]),
            email=payload.get("email"),
            first_name=payload.get("firstName"),
            last_name=payload.get("lastName"),
            custom_fields=_normalize_custom_fields(
                payload.get("customField", payload.get("customFields"))
            ),
        )

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or (self.email or "")

    def custom_field(self, field_id: str, default: Any = None) -> Any:
        value = self.custom_fields.get(field_id)
        return default if value in (None, "") else value

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "customFields": dict(self.custom_fields),
        }


def _normalize_custom_fields(raw: Any) -> Dict[str, Any]:
    """
    HighLevel reports custom fields as a list of ``{"id", "value"}`` objects;
    some payloads use an object keyed by id instead.
    """
    if isinstance(raw, dict):
        return dict(raw)
    fields: Dict[str, Any] = {}
    for item in raw or []:
        if isinstance(item, dict) and item.get("id") is not None:
            fields[str(item["id"])] = item.get("value")
    return fields


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ContactClient(Protocol):
    """
    Operations the routes need from the contact store.

    Lookups return ``None`` when the contact does not exist; every failure to
    talk to the store raises ``UpstreamError``.
    """

    def find_contact_by_email(self, email: str) -> Optional[Contact]:
        ...

    def create_contact(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        plan: str = DEFAULT_PLAN,
    ) -> Contact:
        ...

    def get_contact_by_id(self, contact_id: str) -> Optional[Contact]:
        ...

    def update_contact_research_data(self, contact_id: str, data: Any) -> Contact:
        ...


@dataclass
class CustomFieldIds:
    password: str = "custom_field_id_for_password"
    subscription_tier: str = "custom_field_id_for_subscription_tier"
    research_data: str = "custom_field_id_for_research_data"
    last_research_date: str = "custom_field_id_for_last_research_date"

    @classmethod
    def from_settings(cls, settings: Settings) -> "CustomFieldIds":
        return cls(
            password=settings.field_password,
            subscription_tier=settings.field_subscription_tier,
            research_data=settings.field_research_data,
            last_research_date=settings.field_last_research_date,
        )


def _signup_payload(
    fields: CustomFieldIds,
    email: str,
    password: str,
    first_name: Optional[str],
    last_name: Optional[str],
    plan: Optional[str],
) -> dict:
    return {
        "email": email,
        "firstName": first_name or email.split("@")[0],
        "lastName": last_name or "",
        "customFields": [
            {"id": fields.password, "value": password},
            {"id": fields.subscription_tier, "value": plan or DEFAULT_PLAN},
        ],
    }


def _research_payload(fields: CustomFieldIds, data: Any) -> dict:
    return {
        "customFields": [
            {"id": fields.research_data, "value": json.dumps(data)},
            {"id": fields.last_research_date, "value": _utc_timestamp()},
        ]
    }


@dataclass
class HighLevelContactClient:
    """
    Client for the HighLevel v1 contacts REST API.
    """

    base_url: str
    access_token: str
    timeout: float = 30.0
    fields: CustomFieldIds = field(default_factory=CustomFieldIds)
    session: requests.Session = field(default_factory=requests.Session)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HighLevelContactClient":
        if not settings.api_access_token:
            logger.warning("API_ACCESS_TOKEN is not set; HighLevel calls will fail")
        return cls(
            base_url=settings.highlevel_base_url,
            access_token=settings.api_access_token or "",
            timeout=settings.upstream_timeout_seconds,
            fields=CustomFieldIds.from_settings(settings),
        )

    def find_contact_by_email(self, email: str) -> Optional[Contact]:
        body = self._request(
            "GET",
            "/contacts/search",
            operation="findContactByEmail",
            params={"query": email},
        )
        contacts = (body or {}).get("contacts") or []
        return Contact.from_api(contacts[0]) if contacts else None

    def create_contact(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        plan: str = DEFAULT_PLAN,
    ) -> Contact:
        body = self._request(
            "POST",
            "/contacts",
            operation="createContact",
            json_body=_signup_payload(
                self.fields, email, password, first_name, last_name, plan
            ),
        )
        contact = Contact.from_api((body or {}).get("contact"))
        if contact is None:
            logger.error("HighLevel createContact returned no contact: %s", body)
            raise UpstreamError("createContact returned no contact")
        return contact

    def get_contact_by_id(self, contact_id: str) -> Optional[Contact]:
        body = self._request(
            "GET",
            f"/contacts/{quote(contact_id, safe='')}",
            operation="getContactById",
            allow_not_found=True,
        )
        if body is None:
            return None
        return Contact.from_api(body.get("contact"))

    def update_contact_research_data(self, contact_id: str, data: Any) -> Contact:
        body = self._request(
            "PUT",
            f"/contacts/{quote(contact_id, safe='')}",
            operation="updateContactResearchData",
            json_body=_research_payload(self.fields, data),
        )
        contact = Contact.from_api((body or {}).get("contact"))
        if contact is None:
            logger.error(
                "HighLevel updateContactResearchData returned no contact: %s", body
            )
            raise UpstreamError("updateContactResearchData returned no contact")
        return contact

    def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
        allow_not_found: bool = False,
    ) -> Optional[dict]:
        url = f"{self.base_url.rstrip('/')}{path}"
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("HighLevel %s error: %s", operation, exc)
            raise UpstreamError(f"{operation} failed") from exc

        if allow_not_found and response.status_code == 404:
            return None
        if not response.ok:
            logger.error(
                "HighLevel %s error: %s %s",
                operation,
                response.status_code,
                response.text,
            )
            raise UpstreamError(
                f"{operation} failed", status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError as exc:
            logger.error("HighLevel %s returned invalid JSON: %s", operation, exc)
            raise UpstreamError(f"{operation} returned invalid JSON") from exc


class InMemoryContactClient:
    """Contact store for development and tests."""

    def __init__(self, fields: Optional[CustomFieldIds] = None):
        self.fields = fields or CustomFieldIds()
        self.contacts: Dict[str, Contact] = {}
        self.calls: list[str] = []
        # Set to an UpstreamError to make every call fail with it.
        self.failure: Optional[UpstreamError] = None

    def reset(self) -> None:
        self.contacts.clear()
        self.calls.clear()
        self.failure = None

    def add_contact(self, contact: Contact) -> Contact:
        self.contacts[contact.id] = contact
        return contact

    def find_contact_by_email(self, email: str) -> Optional[Contact]:
        self._record("find_contact_by_email")
        for contact in self.contacts.values():
            if contact.email == email:
                return contact
        return None

    def create_contact(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        plan: str = DEFAULT_PLAN,
    ) -> Contact:
        self._record("create_contact")
        payload = _signup_payload(
            self.fields, email, password, first_name, last_name, plan
        )
        payload["id"] = uuid.uuid4().hex
        return self.add_contact(Contact.from_api(payload))

    def get_contact_by_id(self, contact_id: str) -> Optional[Contact]:
        self._record("get_contact_by_id")
        return self.contacts.get(contact_id)

    def update_contact_research_data(self, contact_id: str, data: Any) -> Contact:
        self._record("update_contact_research_data")
        contact = self.contacts.get(contact_id)
        if contact is None:
            raise UpstreamError("updateContactResearchData failed", status_code=400)
        contact.custom_fields.update(
            _normalize_custom_fields(_research_payload(self.fields, data)["customFields"])
        )
        return contact

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if self.failure is not None:
            raise self.failure
