# -*- coding: utf-8 -*-

from __future__ import annotations

import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient


class TestHealthlogApi(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._tmp = Path(tempfile.mkdtemp(prefix="healthlog-test-"))
        data_root = cls._tmp / "data"
        os.environ["HEALTHLOG_DATA_ROOT"] = str(data_root)
        os.environ["HEALTHLOG_DB_PATH"] = str(data_root / "healthlog.db")
        os.environ["HEALTHLOG_TZ"] = "UTC"

        # Ensure settings/app reflect the env vars above.
        for name in list(sys.modules.keys()):
            if name == "healthlog" or name.startswith("healthlog."):
                sys.modules.pop(name, None)

        from healthlog.api import app  # noqa: WPS433 (import inside test for env control)

        cls.app = app
        cls.client = TestClient(app)

    @classmethod
    def tearDownClass(cls) -> None:
        try:
            cls.client.close()
        except Exception:
            pass
        shutil.rmtree(cls._tmp, ignore_errors=True)

    def test_health(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

    def test_first_sleep_log_drives_streak_and_completion(self) -> None:
        day = "2023-01-15"
        resp = self.client.post("/api/logs/sleep", json={"date": day, "duration": 7})
        self.assertEqual(resp.status_code, 200)
        entry = resp.json()
        self.assertEqual(entry["duration"], 7)
        self.assertEqual(entry["category"], "sleep")

        resp = self.client.get(f"/api/logs/sleep/day/{day}")
        self.assertEqual(resp.status_code, 200)
        items = resp.json()["items"]
        self.assertEqual([i["id"] for i in items], [entry["id"]])

        resp = self.client.get("/api/stats/streak", params={"as_of": day})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["current"], 1)

        resp = self.client.get("/api/stats/completion", params={"date": day})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["completion_rate"], 20)

        resp = self.client.get(
            "/api/stats/completion", params=[("date", day), ("categories", "sleep"), ("categories", "water")]
        )
        self.assertEqual(resp.json()["completion_rate"], 50)

    def test_validation_errors_map_to_422(self) -> None:
        resp = self.client.post("/api/logs/food", json={"date": "2023-02-01", "calories": 10})
        self.assertEqual(resp.status_code, 422)
        self.assertIn("name", resp.json()["detail"])

        resp = self.client.post("/api/logs/steps", json={"date": "2023-02-01", "count": 10})
        self.assertEqual(resp.status_code, 422)

        resp = self.client.get("/api/logs/food", params={"start": "garbage", "end": "2023-02-01"})
        self.assertEqual(resp.status_code, 422)

    def test_update_and_delete(self) -> None:
        day = "2023-03-10"
        entry = self.client.post("/api/logs/food", json={"date": day, "name": "rice", "calories": 200}).json()

        resp = self.client.patch(f"/api/logs/food/{day}/{entry['id']}", json={"calories": 250})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["calories"], 250)
        self.assertEqual(resp.json()["name"], "rice")

        resp = self.client.patch(f"/api/logs/food/{day}/missing", json={"calories": 1})
        self.assertEqual(resp.status_code, 404)

        resp = self.client.delete(f"/api/logs/food/{day}/{entry['id']}")
        self.assertEqual(resp.json(), {"deleted": True})
        resp = self.client.delete(f"/api/logs/food/{day}/{entry['id']}")
        self.assertEqual(resp.json(), {"deleted": False})

    def test_water_singleton_and_range_totals(self) -> None:
        self.client.post("/api/logs/water", json={"date": "2023-04-01", "amount": 500})
        self.client.post("/api/logs/water", json={"date": "2023-04-01", "amount": 1200})
        self.client.post("/api/logs/water", json={"date": "2023-04-02", "amount": 800})

        resp = self.client.get("/api/logs/water", params={"start": "2023-04-01", "end": "2023-04-03"})
        self.assertEqual(resp.status_code, 200)
        amounts = [i["amount"] for i in resp.json()["items"]]
        self.assertEqual(amounts, [1200, 800])

        resp = self.client.get(
            "/api/stats/totals/water", params={"field": "amount", "start": "2023-04-01", "end": "2023-04-03"}
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["total"], 2000)

        resp = self.client.get("/api/stats/summary", params={"start": "2023-04-01", "end": "2023-04-02"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["totals"]["water_ml"], 2000.0)

    def test_insights_flow(self) -> None:
        for offset in range(6):
            self.client.post("/api/logs/water", json={"date": f"2023-06-{10 + offset:02d}", "amount": 900})

        resp = self.client.get("/api/insights", params={"as_of": "2023-06-15"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["window_end"], "2023-06-15")
        self.assertEqual(body["items"][0]["title"], "Stay Hydrated")

        resp = self.client.post("/api/insights/generate", params={"as_of": "2023-06-15"})
        self.assertEqual(resp.status_code, 200)
        insight = resp.json()
        self.assertFalse(insight["is_read"])

        saved_ids = [i["id"] for i in self.client.get("/api/insights/saved").json()]
        self.assertIn(insight["id"], saved_ids)

        resp = self.client.post(f"/api/insights/{insight['id']}/read")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["is_read"])

        unread_ids = [i["id"] for i in self.client.get("/api/insights/saved", params={"unread_only": True}).json()]
        self.assertNotIn(insight["id"], unread_ids)

        resp = self.client.post("/api/insights/does-not-exist/read")
        self.assertEqual(resp.status_code, 404)

    def test_listing_insights_has_no_side_effects(self) -> None:
        params = {"as_of": "2023-08-20"}
        listed = self.client.get("/api/insights", params=params)
        self.assertEqual(listed.status_code, 200)
        listed_ids = [i["id"] for i in listed.json()["items"]]
        self.assertTrue(listed_ids)
        saved_ids = [i["id"] for i in self.client.get("/api/insights/saved").json()]
        self.assertFalse(set(listed_ids) & set(saved_ids))

        resp = self.client.post("/api/insights", params=params)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([i["id"] for i in resp.json()["items"]], listed_ids)
        saved_ids = [i["id"] for i in self.client.get("/api/insights/saved").json()]
        self.assertTrue(set(listed_ids) <= set(saved_ids))

    def test_insights_near_first_calendar_day(self) -> None:
        resp = self.client.get("/api/insights", params={"as_of": "0001-01-05"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["window_start"], "0001-01-01")
        self.assertEqual(len(body["items"]), 1)

    def test_overlong_ranges_are_rejected(self) -> None:
        span = {"start": "0001-01-01", "end": "9999-12-31"}
        for path, extra in (
            ("/api/logs/food", {}),
            ("/api/stats/summary", {}),
            ("/api/stats/totals/food", {"field": "calories"}),
        ):
            with self.subTest(path=path):
                resp = self.client.get(path, params={**span, **extra})
                self.assertEqual(resp.status_code, 422)

        resp = self.client.get("/api/logs/food", params={"start": "2023-01-01", "end": "2023-12-31"})
        self.assertEqual(resp.status_code, 200)

    def test_storage_failure_maps_to_503(self) -> None:
        from healthlog.deps import get_log_store  # noqa: WPS433
        from healthlog.errors import StorageError
        from healthlog.logs.backends import InMemoryLogBackend
        from healthlog.logs.storage import LogStore

        class BrokenBackend(InMemoryLogBackend):
            async def get(self, category, key):
                raise StorageError("database is locked")

            async def get_many(self, category, keys):
                raise StorageError("database is locked")

        self.app.dependency_overrides[get_log_store] = lambda: LogStore(BrokenBackend())
        try:
            resp = self.client.get("/api/logs/food/day/2023-07-01")
        finally:
            self.app.dependency_overrides.pop(get_log_store, None)
        self.assertEqual(resp.status_code, 503)


if __name__ == "__main__":
    unittest.main()
