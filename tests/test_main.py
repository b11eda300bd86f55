import unittest

from fastapi.testclient import TestClient

from washcast.main import APP_VERSION, app


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "Washcast")
        self.assertEqual(app.version, APP_VERSION)

    def test_service_info(self):
        resp = TestClient(app).get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["api"], "/v1")


if __name__ == "__main__":
    unittest.main()
