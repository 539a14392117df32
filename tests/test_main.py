import unittest

from app.main import app


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "OpsIntel Dashboard")

    def test_api_routes_are_mounted(self):
        paths = app.openapi()["paths"]
        self.assertEqual(set(paths["/api/dashboard"]), {"get"})
        self.assertEqual(set(paths["/api/dashboard/cache"]), {"get", "delete"})
        self.assertEqual(set(paths["/api/health"]), {"get"})


if __name__ == "__main__":
    unittest.main()
