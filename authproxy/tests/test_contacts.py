import json
import unittest
from unittest.mock import MagicMock

import requests

from authproxy.config import Settings
from authproxy.contacts import (
    Contact,
    CustomFieldIds,
    HighLevelContactClient,
    InMemoryContactClient,
    UpstreamError,
)


def _response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text or json.dumps(payload)
    response.json.return_value = payload
    return response


class HighLevelContactClientTests(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.client = HighLevelContactClient(
            base_url="https://crm.example.test/v1/",
            access_token="secret",
            timeout=5,
            session=self.session,
        )

    def _call(self):
        args, kwargs = self.session.request.call_args
        return args, kwargs

    def test_find_contact_by_email_returns_first_match(self):
        self.session.request.return_value = _response(
            payload={
                "contacts": [
                    {"id": "c1", "email": "ada@example.com", "firstName": "Ada"},
                    {"id": "c2", "email": "ada@example.com"},
                ]
            }
        )
        contact = self.client.find_contact_by_email("ada@example.com")
        self.assertEqual(contact.id, "c1")
        self.assertEqual(contact.first_name, "Ada")

        args, kwargs = self._call()
        self.assertEqual(args, ("GET", "https://crm.example.test/v1/contacts/search"))
        self.assertEqual(kwargs["params"], {"query": "ada@example.com"})
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer secret")
        self.assertEqual(kwargs["timeout"], 5)

    def test_find_contact_by_email_without_match(self):
        self.session.request.return_value = _response(payload={"contacts": []})
        self.assertIsNone(self.client.find_contact_by_email("nobody@example.com"))

    def test_find_contact_by_email_raises_on_connection_error(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(UpstreamError) as ctx:
            self.client.find_contact_by_email("ada@example.com")
        self.assertIsNone(ctx.exception.status_code)

    def test_create_contact_stores_password_and_plan(self):
        self.session.request.return_value = _response(
            payload={"contact": {"id": "new1", "email": "ada@example.com"}}
        )
        contact = self.client.create_contact("ada@example.com", "hunter22")
        self.assertEqual(contact.id, "new1")

        args, kwargs = self._call()
        self.assertEqual(args, ("POST", "https://crm.example.test/v1/contacts"))
        body = kwargs["json"]
        self.assertEqual(body["firstName"], "ada")
        self.assertEqual(body["lastName"], "")
        self.assertEqual(
            body["customFields"],
            [
                {"id": "custom_field_id_for_password", "value": "hunter22"},
                {"id": "custom_field_id_for_subscription_tier", "value": "Individual"},
            ],
        )

    def test_create_contact_with_explicit_names_and_plan(self):
        self.session.request.return_value = _response(
            payload={"contact": {"id": "new1"}}
        )
        self.client.create_contact("ada@example.com", "hunter22", "Ada", "Lovelace", "Team")
        body = self._call()[1]["json"]
        self.assertEqual((body["firstName"], body["lastName"]), ("Ada", "Lovelace"))
        self.assertEqual(body["customFields"][1]["value"], "Team")

    def test_create_contact_rejected_upstream(self):
        self.session.request.return_value = _response(
            status_code=422, payload={"msg": "duplicate"}
        )
        with self.assertRaises(UpstreamError) as ctx:
            self.client.create_contact("ada@example.com", "hunter22")
        self.assertEqual(ctx.exception.status_code, 422)
        self.assertTrue(ctx.exception.is_client_error)

    def test_create_contact_without_contact_in_body(self):
        self.session.request.return_value = _response(payload={})
        with self.assertRaises(UpstreamError):
            self.client.create_contact("ada@example.com", "hunter22")

    def test_get_contact_by_id(self):
        self.session.request.return_value = _response(
            payload={
                "contact": {
                    "id": "c1",
                    "email": "ada@example.com",
                    "customField": [
                        {"id": "custom_field_id_for_subscription_tier", "value": "Expired"}
                    ],
                }
            }
        )
        contact = self.client.get_contact_by_id("c1")
        self.assertEqual(
            contact.custom_field("custom_field_id_for_subscription_tier"), "Expired"
        )
        args, _ = self._call()
        self.assertEqual(args, ("GET", "https://crm.example.test/v1/contacts/c1"))

    def test_get_contact_by_id_escapes_the_id(self):
        self.session.request.return_value = _response(payload={"contact": None})
        self.assertIsNone(self.client.get_contact_by_id("../locations"))
        args, _ = self._call()
        self.assertEqual(args[1], "https://crm.example.test/v1/contacts/..%2Flocations")

    def test_get_contact_by_id_not_found(self):
        self.session.request.return_value = _response(status_code=404, payload={})
        self.assertIsNone(self.client.get_contact_by_id("missing"))

    def test_get_contact_by_id_server_error(self):
        self.session.request.return_value = _response(status_code=503, text="down")
        with self.assertRaises(UpstreamError) as ctx:
            self.client.get_contact_by_id("c1")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertFalse(ctx.exception.is_client_error)

    def test_get_contact_by_id_invalid_json(self):
        response = _response(payload=None, text="<html>")
        response.json.side_effect = ValueError("no json")
        self.session.request.return_value = response
        with self.assertRaises(UpstreamError):
            self.client.get_contact_by_id("c1")

    def test_update_contact_research_data(self):
        self.session.request.return_value = _response(
            payload={"contact": {"id": "c1"}}
        )
        data = {"topic": "solar", "notes": ["a", "b"]}
        contact = self.client.update_contact_research_data("c1", data)
        self.assertEqual(contact.id, "c1")

        args, kwargs = self._call()
        self.assertEqual(args, ("PUT", "https://crm.example.test/v1/contacts/c1"))
        fields = {f["id"]: f["value"] for f in kwargs["json"]["customFields"]}
        self.assertEqual(json.loads(fields["custom_field_id_for_research_data"]), data)
        self.assertTrue(fields["custom_field_id_for_last_research_date"].endswith("Z"))

    def test_update_contact_research_data_raises(self):
        self.session.request.return_value = _response(status_code=500, payload={})
        with self.assertRaises(UpstreamError):
            self.client.update_contact_research_data("c1", {"a": 1})

    def test_from_settings(self):
        settings = Settings(
            _env_file=None,
            highlevel_base_url="https://crm.example.test/v2",
            api_access_token="tok",
            upstream_timeout_seconds=3,
            field_subscription_tier="tier_field",
        )
        client = HighLevelContactClient.from_settings(settings)
        self.assertEqual(client.base_url, "https://crm.example.test/v2")
        self.assertEqual(client.access_token, "tok")
        self.assertEqual(client.timeout, 3)
        self.assertEqual(client.fields.subscription_tier, "tier_field")


class ContactTests(unittest.TestCase):
    def test_custom_fields_from_list_or_mapping(self):
        from_list = Contact.from_api(
            {"id": "c1", "customFields": [{"id": "f1", "value": "v1"}, {"value": "x"}]}
        )
        from_mapping = Contact.from_api({"id": "c1", "customField": {"f1": "v1"}})
        self.assertEqual(from_list.custom_fields, {"f1": "v1"})
        self.assertEqual(from_mapping.custom_fields, {"f1": "v1"})

    def test_missing_payload_or_id(self):
        self.assertIsNone(Contact.from_api(None))
        self.assertIsNone(Contact.from_api({"email": "ada@example.com"}))

    def test_custom_field_default_for_blank_values(self):
        contact = Contact(id="c1", custom_fields={"tier": ""})
        self.assertEqual(contact.custom_field("tier", "Individual"), "Individual")

    def test_display_name(self):
        self.assertEqual(
            Contact(id="c1", first_name="Ada", last_name="Lovelace").display_name,
            "Ada Lovelace",
        )
        self.assertEqual(
            Contact(id="c1", email="ada@example.com").display_name, "ada@example.com"
        )


class InMemoryContactClientTests(unittest.TestCase):
    def test_create_find_and_update(self):
        store = InMemoryContactClient(CustomFieldIds(research_data="research"))
        created = store.create_contact("ada@example.com", "hunter22")
        self.assertEqual(store.find_contact_by_email("ada@example.com"), created)
        self.assertEqual(created.first_name, "ada")

        updated = store.update_contact_research_data(created.id, [1, 2])
        self.assertEqual(updated.custom_fields["research"], "[1, 2]")
        self.assertEqual(
            store.calls,
            ["create_contact", "find_contact_by_email", "update_contact_research_data"],
        )

    def test_failure_applies_to_every_call(self):
        store = InMemoryContactClient()
        store.failure = UpstreamError("boom", status_code=500)
        with self.assertRaises(UpstreamError):
            store.get_contact_by_id("c1")


if __name__ == "__main__":
    unittest.main()
