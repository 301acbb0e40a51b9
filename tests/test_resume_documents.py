import json
import time
import unittest

from app_env import OTHER_USER, USER

from fastapi.testclient import TestClient

from app.core.db import clear_all_tables
from app.main import app
from app.services.resume_service import DEFAULT_RESUME_CONTENT


class ResumeDocumentsApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        clear_all_tables()

    def _create(self, headers=USER, **payload):
        payload.setdefault("title", "Backend resume")
        response = self.client.post("/v1/resumes", json=payload, headers=headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_uses_empty_document_skeleton(self):
        resume = self._create(title="  Platform resume  ")
        self.assertEqual(resume["title"], "Platform resume")
        self.assertEqual(resume["content"], DEFAULT_RESUME_CONTENT)
        self.assertEqual(json.loads(resume["content"])["experience"], [])
        self.assertIsNone(resume["template_id"])

        custom = self._create(content='{"summary": "Ships things"}', template_id="modern")
        self.assertEqual(custom["content"], '{"summary": "Ships things"}')
        self.assertEqual(custom["template_id"], "modern")

    def test_blank_title_rejected(self):
        response = self.client.post("/v1/resumes", json={"title": "   "}, headers=USER)
        self.assertEqual(response.status_code, 422)

    def test_list_newest_first_and_scoped(self):
        first = self._create(title="First")
        time.sleep(0.002)
        second = self._create(title="Second")
        self._create(headers=OTHER_USER, title="Bob's")

        listed = self.client.get("/v1/resumes", headers=USER).json()
        self.assertEqual([item["id"] for item in listed], [second["id"], first["id"]])

        self.assertEqual(self.client.get(f"/v1/resumes/{first['id']}", headers=USER).json()["title"], "First")
        self.assertEqual(self.client.get(f"/v1/resumes/{first['id']}", headers=OTHER_USER).status_code, 404)

    def test_update_patches_fields_and_bumps_last_modified(self):
        resume = self._create()
        time.sleep(0.002)
        response = self.client.patch(
            f"/v1/resumes/{resume['id']}",
            json={"title": "Renamed", "template_id": "classic"},
            headers=USER,
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["title"], "Renamed")
        self.assertEqual(body["template_id"], "classic")
        self.assertEqual(body["content"], resume["content"])
        self.assertGreater(body["last_modified"], resume["last_modified"])

        self.assertEqual(
            self.client.patch(f"/v1/resumes/{resume['id']}", json={"content": None}, headers=USER).status_code,
            422,
        )
        self.assertEqual(
            self.client.patch(f"/v1/resumes/{resume['id']}", json={"title": "Hijack"}, headers=OTHER_USER).status_code,
            404,
        )

    def test_delete(self):
        resume = self._create()
        self.assertEqual(self.client.delete(f"/v1/resumes/{resume['id']}", headers=OTHER_USER).status_code, 404)
        self.assertEqual(self.client.delete(f"/v1/resumes/{resume['id']}", headers=USER).status_code, 204)
        self.assertEqual(self.client.delete(f"/v1/resumes/{resume['id']}", headers=USER).status_code, 404)
        self.assertEqual(self.client.get("/v1/resumes", headers=USER).json(), [])


if __name__ == "__main__":
    unittest.main()
