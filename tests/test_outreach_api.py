import unittest
from unittest.mock import patch

from app_env import OTHER_USER, USER

from fastapi.testclient import TestClient

from app.ai import client as ai_client
from app.core.db import clear_all_tables, now_ms
from app.main import app
from app.services.referral_scorer import MS_PER_DAY


class OutreachApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        clear_all_tables()

    def _add_contact(self, headers=USER, **overrides):
        payload = {
            "name": "Ana Lopez",
            "email": "ana@acme.com",
            "company": "Acme",
            "title": "Engineering Manager",
            "connection_degree": 1,
            "relationship_strength": 5,
            "last_contacted_at": now_ms() - 3 * MS_PER_DAY,
        }
        payload.update(overrides)
        response = self.client.post("/v1/outreach/contacts", json=payload, headers=headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_identity_header_required(self):
        response = self.client.get("/v1/outreach/contacts")
        self.assertEqual(response.status_code, 401)

    def test_contact_validation(self):
        response = self.client.post(
            "/v1/outreach/contacts",
            json={"name": "   ", "connection_degree": 1, "relationship_strength": 3},
            headers=USER,
        )
        self.assertEqual(response.status_code, 422)
        response = self.client.post(
            "/v1/outreach/contacts",
            json={"name": "Far Away", "connection_degree": 4, "relationship_strength": 3},
            headers=USER,
        )
        self.assertEqual(response.status_code, 422)

    def test_contacts_are_scoped_to_owner(self):
        self._add_contact()
        self.assertEqual(len(self.client.get("/v1/outreach/contacts", headers=USER).json()), 1)
        self.assertEqual(self.client.get("/v1/outreach/contacts", headers=OTHER_USER).json(), [])

    def test_suggestions_rank_contacts(self):
        self._add_contact(name="Ana Lopez")
        self._add_contact(
            name="Ben Ng",
            email="ben@globex.com",
            company="Globex",
            connection_degree=2,
            relationship_strength=3,
            last_contacted_at=now_ms() - 40 * MS_PER_DAY,
        )
        self._add_contact(name="Cy Park", email=None, company=None, connection_degree=3, relationship_strength=2, last_contacted_at=None)

        response = self.client.get("/v1/outreach/suggestions", params={"company_name": "acme", "limit": 2}, headers=USER)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["company_name"], "acme")
        self.assertEqual([item["contact"]["name"] for item in body["candidates"]], ["Ana Lopez", "Ben Ng"])
        self.assertEqual([item["referral_likelihood"] for item in body["candidates"]], [100, 86])

    def test_suggestions_limit_bounds(self):
        response = self.client.get("/v1/outreach/suggestions", params={"company_name": "Acme", "limit": 0}, headers=USER)
        self.assertEqual(response.status_code, 422)

    def test_email_sequence_and_follow_up_reminder(self):
        contact = self._add_contact()
        response = self.client.post(
            "/v1/outreach/sequences",
            params={"sender_name": "Sam"},
            json={"contact_id": contact["id"], "company_name": "Acme", "target_role": "Backend Engineer", "channel": "email"},
            headers=USER,
        )
        self.assertEqual(response.status_code, 201, response.text)
        sequence = response.json()
        self.assertEqual(sequence["status"], "draft")
        self.assertEqual(sequence["referral_likelihood"], 100)
        self.assertEqual(sequence["next_follow_up_at"] - sequence["created_at"], 3 * MS_PER_DAY)
        self.assertEqual(len(sequence["messages"]), 2)
        intro, follow_up = sequence["messages"]
        self.assertEqual(intro["subject"], "[Warm Intro] Backend Engineer @ Acme")
        self.assertTrue(intro["body"].startswith("Hi Ana,"))
        self.assertIn("Noticed you're at Acme", intro["body"])
        self.assertIn("- Sam", follow_up["body"])
        self.assertTrue(all(message["status"] == "draft" for message in sequence["messages"]))

        notifications = self.client.get("/v1/notifications", headers=USER).json()
        self.assertEqual(notifications["unread_count"], 1)
        self.assertEqual(notifications["items"][0]["type"], "reminder")

    def test_dm_sequence_has_no_subjects(self):
        contact = self._add_contact(company="Globex", connection_degree=2)
        response = self.client.post(
            "/v1/outreach/sequences",
            json={"contact_id": contact["id"], "company_name": "Acme", "channel": "dm"},
            headers=USER,
        )
        self.assertEqual(response.status_code, 201)
        messages = response.json()["messages"]
        self.assertTrue(all(message["subject"] is None for message in messages))
        self.assertIn("exploring a role opportunities at Acme", messages[0]["body"])

    def test_sequence_requires_own_contact(self):
        contact = self._add_contact(headers=OTHER_USER)
        response = self.client.post(
            "/v1/outreach/sequences",
            json={"contact_id": contact["id"], "company_name": "Acme", "channel": "email"},
            headers=USER,
        )
        self.assertEqual(response.status_code, 404)

    def test_sequence_status_and_follow_up_updates(self):
        contact = self._add_contact()
        sequence = self.client.post(
            "/v1/outreach/sequences",
            json={"contact_id": contact["id"], "company_name": "Acme", "channel": "email"},
            headers=USER,
        ).json()

        response = self.client.patch(
            f"/v1/outreach/sequences/{sequence['id']}/status", json={"status": "in_progress"}, headers=USER
        )
        self.assertEqual(response.json(), {"ok": True})
        response = self.client.patch(
            f"/v1/outreach/sequences/{sequence['id']}/follow-up", json={"next_follow_up_at": 123}, headers=USER
        )
        self.assertEqual(response.status_code, 200)

        stored = self.client.get("/v1/outreach/sequences", headers=USER).json()[0]
        self.assertEqual(stored["status"], "in_progress")
        self.assertEqual(stored["next_follow_up_at"], 123)

        missing = self.client.patch("/v1/outreach/sequences/nope/status", json={"status": "paused"}, headers=USER)
        self.assertEqual(missing.status_code, 404)
        foreign = self.client.patch(
            f"/v1/outreach/sequences/{sequence['id']}/status", json={"status": "paused"}, headers=OTHER_USER
        )
        self.assertEqual(foreign.status_code, 404)

    def test_seed_is_idempotent(self):
        first = self.client.post("/v1/outreach/seed", headers=USER).json()
        second = self.client.post("/v1/outreach/seed", headers=USER).json()
        self.assertEqual(first, {"result": "seeded"})
        self.assertEqual(second, {"result": "already_seeded"})
        self.assertEqual(len(self.client.get("/v1/outreach/contacts", headers=USER).json()), 3)
        self.assertEqual(len(self.client.get("/v1/outreach/targets", headers=USER).json()), 1)

    def test_generate_contacts_without_llm(self):
        response = self.client.post("/v1/outreach/contacts/generate", json={"company_name": "Acme"}, headers=USER)
        self.assertEqual(response.status_code, 503)

    def test_generate_contacts_dedupes_by_email(self):
        self._add_contact()
        reply = (
            '[{"name": "Ana L", "email": " ANA@acme.com ", "title": "EM"},'
            ' {"name": "Ben", "email": "ben@acme.com", "title": "Recruiter"},'
            ' {"name": "Ben Again", "email": "Ben@Acme.com"},'
            ' {"name": "", "email": "ghost@acme.com"},'
            ' {"name": "Cy", "title": "Staff Engineer"}]'
        )
        with patch.object(ai_client, "llm_enabled", return_value=True), patch.object(
            ai_client, "_complete", return_value=reply
        ):
            response = self.client.post(
                "/v1/outreach/contacts/generate",
                json={"company_name": "Acme", "count": 50},
                headers=USER,
            )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json(), {"inserted": 2})

        contacts = {c["name"]: c for c in self.client.get("/v1/outreach/contacts", headers=USER).json()}
        self.assertEqual(set(contacts), {"Ana Lopez", "Ben", "Cy"})
        self.assertEqual(contacts["Ben"]["connection_degree"], 2)
        self.assertEqual(contacts["Ben"]["relationship_strength"], 3)
        self.assertEqual(contacts["Ben"]["company"], "Acme")

    def test_generate_contacts_malformed_output(self):
        with patch.object(ai_client, "llm_enabled", return_value=True), patch.object(
            ai_client, "_complete", return_value="no json here"
        ):
            response = self.client.post("/v1/outreach/contacts/generate", json={"company_name": "Acme"}, headers=USER)
        self.assertEqual(response.status_code, 502)

    def test_email_requires_smtp(self):
        response = self.client.post(
            "/v1/outreach/email",
            json={"to": "ana@acme.com", "subject": "Hello", "body": "Hi Ana"},
            headers=USER,
        )
        self.assertEqual(response.status_code, 503)


if __name__ == "__main__":
    unittest.main()
