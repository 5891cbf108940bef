import unittest

from fastapi.testclient import TestClient

from survey_backend.app import create_app
from survey_backend.dependencies import get_row_store
from survey_backend.store import InMemoryRowStore


class SubmissionsApiTests(unittest.TestCase):
    def setUp(self):
        app = create_app()
        self.store = InMemoryRowStore()
        app.dependency_overrides[get_row_store] = lambda: self.store
        self.client = TestClient(app)

    def test_submit_and_list(self):
        response = self.client.post(
            "/api/submissions",
            json={"headers": ["Role", "Total Score"], "values": ["Lead", "42"], "hash": "h1"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

        list_resp = self.client.get("/api/submissions", params={"action": "getAll"})
        self.assertEqual(list_resp.status_code, 200)
        self.assertEqual(
            list_resp.json(), [{"role": "Lead", "totalScore": 42, "hash": "h1"}]
        )

    def test_duplicate_submission(self):
        body = {"headers": ["Role"], "values": ["Lead"], "hash": "dup"}
        self.client.post("/api/submissions", json=body)
        response = self.client.post("/api/submissions", json=body)
        self.assertEqual(response.json(), {"status": "duplicate"})
        self.assertEqual(len(self.client.get("/api/submissions").json()), 1)

    def test_plain_text_body_is_accepted(self):
        response = self.client.post(
            "/api/submissions",
            content='{"values": ["x"], "hash": "t"}',
            headers={"Content-Type": "text/plain;charset=utf-8"},
        )
        self.assertEqual(response.json(), {"status": "ok"})

    def test_malformed_body_reports_error(self):
        response = self.client.post(
            "/api/submissions",
            content="not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["status"], "error")
        self.assertIn("message", payload)

    def test_empty_list(self):
        response = self.client.get("/api/submissions")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_unknown_action(self):
        response = self.client.get("/api/submissions", params={"action": "foo"})
        self.assertEqual(response.json(), {"status": "unknown action"})


if __name__ == "__main__":
    unittest.main()
