import unittest

from app_env import OTHER_USER, USER

from fastapi.testclient import TestClient

from app.core.db import clear_all_tables
from app.main import app
from app.services.job_service import parse_job_text

RESUME = "Backend engineer with eight years of Python, FastAPI and PostgreSQL experience."
JD = "We are hiring a backend engineer to own Python services, APIs and data pipelines."


class ParseJobTextTests(unittest.TestCase):
    def test_title_at_company_first_line(self):
        title, company, description = parse_job_text("Senior Backend Engineer at Acme Corp\nWe build rockets.")
        self.assertEqual(title, "Senior Backend Engineer at Acme Corp")
        self.assertEqual(company, "Acme Corp")
        self.assertEqual(description, "Senior Backend Engineer at Acme Corp\nWe build rockets.")

    def test_labelled_lines(self):
        text = "Hiring now!\nJob Title: Data Engineer\nCompany - Globex\nRemote friendly."
        title, company, _ = parse_job_text(text)
        self.assertEqual(title, "Data Engineer")
        self.assertEqual(company, "Globex")

    def test_defaults_and_limits(self):
        title, company, description = parse_job_text("x" * 9000)
        self.assertEqual(len(title), 120)
        self.assertEqual(company, "Unknown Company")
        self.assertEqual(len(description), 8000)


class JobsApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        clear_all_tables()

    def _create(self, **overrides):
        payload = {"job_title": "Backend Engineer", "company_name": "Acme"}
        payload.update(overrides)
        response = self.client.post("/v1/jobs", json=payload, headers=USER)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_and_list(self):
        job = self._create(job_description="Build APIs")
        self.assertEqual(job["status"], "Saved")
        self.assertIsNone(job["analysis_id"])
        self._create(job_title="Data Engineer")
        titles = [item["job_title"] for item in self.client.get("/v1/jobs", headers=USER).json()]
        self.assertEqual(titles, ["Data Engineer", "Backend Engineer"])
        self.assertEqual(self.client.get("/v1/jobs", headers=OTHER_USER).json(), [])

    def test_update_fields(self):
        job = self._create()
        response = self.client.patch(
            f"/v1/jobs/{job['id']}",
            json={"status": "Interviewing", "notes": "Onsite next week", "interview_date": 1700000000000},
            headers=USER,
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["status"], "Interviewing")
        self.assertEqual(body["notes"], "Onsite next week")
        self.assertEqual(body["interview_date"], 1700000000000)

        self.assertEqual(self.client.patch(f"/v1/jobs/{job['id']}", json={"status": None}, headers=USER).status_code, 422)
        self.assertEqual(self.client.patch(f"/v1/jobs/{job['id']}", json={"status": "Ghosted"}, headers=USER).status_code, 422)
        self.assertEqual(self.client.patch(f"/v1/jobs/{job['id']}", json={"notes": "x"}, headers=OTHER_USER).status_code, 404)

    def test_board_groups_by_status(self):
        saved = self._create()
        applied = self._create(job_title="Platform Engineer")
        self.client.patch(f"/v1/jobs/{applied['id']}", json={"status": "Applied"}, headers=USER)

        board = self.client.get("/v1/jobs/board", headers=USER).json()
        self.assertEqual(
            [column["status"] for column in board["columns"]],
            ["Saved", "Applied", "Interviewing", "Offer", "Rejected"],
        )
        columns = {column["status"]: [item["id"] for item in column["items"]] for column in board["columns"]}
        self.assertEqual(columns["Saved"], [saved["id"]])
        self.assertEqual(columns["Applied"], [applied["id"]])
        self.assertEqual(columns["Offer"], [])

    def test_ingest_dedupes_and_keeps_longest_description(self):
        first = self.client.post("/v1/jobs/ingest", json={"text": "Backend Engineer at Acme\nShort."}, headers=USER)
        self.assertEqual(first.status_code, 200)
        self.assertTrue(first.json()["created"])
        job_id = first.json()["job"]["id"]

        longer = "Backend Engineer at Acme\nA much longer description with responsibilities and benefits."
        second = self.client.post("/v1/jobs/ingest", json={"text": longer}, headers=USER).json()
        self.assertFalse(second["created"])
        self.assertEqual(second["job"]["id"], job_id)
        self.assertEqual(second["job"]["job_description"], longer)

        third = self.client.post("/v1/jobs/ingest", json={"text": "Backend Engineer at Acme"}, headers=USER).json()
        self.assertFalse(third["created"])
        self.assertEqual(third["job"]["job_description"], longer)
        self.assertEqual(len(self.client.get("/v1/jobs", headers=USER).json()), 1)

    def test_ingest_rejects_blank_text(self):
        response = self.client.post("/v1/jobs/ingest", json={"text": "   \n "}, headers=USER)
        self.assertEqual(response.status_code, 400)

    def test_delete_removes_linked_analysis(self):
        job = self._create()
        analysis = self.client.post(
            "/v1/analyses",
            json={"resume_text": RESUME, "job_description": JD, "job_application_id": job["id"]},
            headers=USER,
        ).json()
        linked = self.client.get("/v1/jobs", headers=USER).json()[0]
        self.assertEqual(linked["analysis_id"], analysis["id"])

        self.assertEqual(self.client.delete(f"/v1/jobs/{job['id']}", headers=USER).status_code, 204)
        self.assertEqual(self.client.get(f"/v1/analyses/{analysis['id']}", headers=USER).status_code, 404)
        self.assertEqual(self.client.delete(f"/v1/jobs/{job['id']}", headers=USER).status_code, 404)


if __name__ == "__main__":
    unittest.main()
