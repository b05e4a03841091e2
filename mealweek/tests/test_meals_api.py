import unittest
from datetime import date
from fastapi.testclient import TestClient

from mealweek.api.api_run import app
from mealweek.api.auth import auth_provider
from mealweek.api.routes.meals import get_repository
from mealweek.infra.Meal_Repository import MealRepository
from mealweek.infra.storage_backends import InMemoryBackend
from mealweek.utilities.constants import QUICK_WEEK_MAX_OFFSET

HEADERS = {"X-User-Id": "user_123"}


def _today():
    # Week 10 of 2025
    return date(2025, 3, 5)


class ReadOnlyBackend(InMemoryBackend):
    async def set(self, key, value):
        raise ConnectionError("read-only store")


class TestMealsAPI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.repo = MealRepository(InMemoryBackend(), today=_today)
        app.dependency_overrides[get_repository] = lambda: self.repo
        self._required = auth_provider.required
        auth_provider.required = True

    def tearDown(self):
        app.dependency_overrides.clear()
        auth_provider.required = self._required

    def _create(self, name, week, year, **extra):
        resp = self.client.post('/api/meals', json={"name": name, "week": week, "year": year, **extra}, headers=HEADERS)
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()

    def test_create_and_list(self):
        tacos = self._create("  Tacos ", 10, 2025)
        self.assertEqual(tacos["name"], "Tacos")
        self.assertTrue(tacos["id"])
        self.assertTrue(tacos["isThisWeek"])
        self.assertFalse(tacos["eaten"])
        self.assertEqual(tacos["range"], {"start": "Mar 3", "end": "Mar 9, 2025"})

        resp = self.client.get('/api/meals', headers=HEADERS)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([m["id"] for m in resp.json()], [tacos["id"]])

    def test_upcoming_and_historic(self):
        tacos = self._create("Tacos", 10, 2025)
        soup = self._create("Soup", 5, 2025)
        curry = self._create("Curry", 12, 2025)

        data = self.client.get('/api/meals/upcoming', headers=HEADERS).json()
        self.assertEqual((data["week"], data["year"]), (10, 2025))
        self.assertEqual([m["id"] for m in data["meals"]], [tacos["id"], curry["id"]])
        self.assertEqual(data["count"], 2)

        data = self.client.get('/api/meals/upcoming', params={"this_week_only": True}, headers=HEADERS).json()
        self.assertEqual([m["id"] for m in data["meals"]], [tacos["id"]])

        data = self.client.get('/api/meals/historic', headers=HEADERS).json()
        self.assertEqual([m["id"] for m in data["meals"]], [soup["id"]])

    def test_mark_eaten(self):
        curry = self._create("Curry", 12, 2025)
        resp = self.client.post(f'/api/meals/{curry["id"]}/eaten', headers=HEADERS)
        self.assertEqual(resp.status_code, 200)
        eaten = resp.json()
        self.assertEqual((eaten["week"], eaten["year"], eaten["eaten"]), (10, 2025, True))
        upcoming = self.client.get('/api/meals/upcoming', headers=HEADERS).json()
        self.assertEqual(upcoming["meals"], [])
        historic = self.client.get('/api/meals/historic', headers=HEADERS).json()
        self.assertEqual([m["id"] for m in historic["meals"]], [curry["id"]])

    def test_promote(self):
        soup = self._create("Soup", 5, 2025, eaten=True)
        resp = self.client.post(f'/api/meals/{soup["id"]}/promote', headers=HEADERS)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual((resp.json()["week"], resp.json()["eaten"]), (10, False))

    def test_unknown_meal_lifecycle_is_404(self):
        for action in ("eaten", "promote"):
            resp = self.client.post(f'/api/meals/nope/{action}', headers=HEADERS)
            self.assertEqual(resp.status_code, 404)
            self.assertEqual(resp.json()["code"], "MealNotFound")

    def test_edit(self):
        tacos = self._create("Tacos", 10, 2025)
        resp = self.client.put(f'/api/meals/{tacos["id"]}', json={"name": "Fish tacos", "week": 11, "year": 2025}, headers=HEADERS)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["name"], "Fish tacos")
        self.assertFalse(resp.json()["isThisWeek"])
        meals = self.client.get('/api/meals', headers=HEADERS).json()
        self.assertEqual([(m["name"], m["week"]) for m in meals], [("Fish tacos", 11)])

    def test_edit_unknown_id_leaves_collection(self):
        tacos = self._create("Tacos", 10, 2025)
        resp = self.client.put('/api/meals/ghost', json={"name": "Ghost", "week": 11, "year": 2025}, headers=HEADERS)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], "ghost")
        meals = self.client.get('/api/meals', headers=HEADERS).json()
        self.assertEqual([m["id"] for m in meals], [tacos["id"]])

    def test_delete(self):
        tacos = self._create("Tacos", 10, 2025)
        resp = self.client.delete(f'/api/meals/{tacos["id"]}', headers=HEADERS)
        self.assertEqual(resp.json(), {"status": "ok"})
        self.assertEqual(self.client.get('/api/meals', headers=HEADERS).json(), [])
        # Absent id is a no-op
        resp = self.client.delete('/api/meals/ghost', headers=HEADERS)
        self.assertEqual(resp.status_code, 200)

    def test_invalid_input_rejected(self):
        for body in (
            {"name": "Tacos", "week": 0, "year": 2025},
            {"name": "Tacos", "week": 53, "year": 2025},
            {"name": "   ", "week": 10, "year": 2025},
            {"name": "Tacos", "year": 2025},
        ):
            resp = self.client.post('/api/meals', json=body, headers=HEADERS)
            self.assertEqual(resp.status_code, 422, body)
        self.assertEqual(self.client.get('/api/meals', headers=HEADERS).json(), [])

    def test_auth_required(self):
        resp = self.client.get('/api/meals')
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "AuthRequired")
        resp = self.client.post('/api/meals', json={"name": "Tacos", "week": 10, "year": 2025})
        self.assertEqual(resp.status_code, 401)
        self.assertNotIn("meals", self.repo.backend.data)

    def test_auth_optional_variant(self):
        auth_provider.required = False
        resp = self.client.get('/api/meals')
        self.assertEqual(resp.status_code, 200)

    def test_persistence_failure(self):
        self.repo = MealRepository(ReadOnlyBackend(), today=_today)
        with self.assertLogs(level="ERROR"):
            resp = self.client.post('/api/meals', json={"name": "Tacos", "week": 10, "year": 2025}, headers=HEADERS)
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["message"], "Failed to create meal")

    def test_unreadable_store_is_not_overwritten(self):
        self.repo.backend.data["meals"] = "{not json"
        with self.assertLogs(level="ERROR"):
            resp = self.client.post('/api/meals', json={"name": "Tacos", "week": 10, "year": 2025}, headers=HEADERS)
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["code"], "PersistenceError")
        self.assertEqual(self.repo.backend.data["meals"], "{not json")

    def test_changes_feed(self):
        cursor = self.client.get('/api/meals/changes', headers=HEADERS).json()["next_cursor"]
        tacos = self._create("Tacos", 10, 2025)
        self.client.delete(f'/api/meals/{tacos["id"]}', headers=HEADERS)
        data = self.client.get('/api/meals/changes', params={"since": cursor}, headers=HEADERS).json()
        self.assertEqual([(e["action"], e["meal_id"]) for e in data["events"]],
                         [("created", tacos["id"]), ("deleted", tacos["id"])])
        self.assertGreater(data["next_cursor"], cursor)

    def test_changes_feed_filters_by_action(self):
        cursor = self.client.get('/api/meals/changes', headers=HEADERS).json()["next_cursor"]
        tacos = self._create("Tacos", 10, 2025)
        soup = self._create("Soup", 11, 2025)
        self.client.delete(f'/api/meals/{tacos["id"]}', headers=HEADERS)
        data = self.client.get('/api/meals/changes', params={"since": cursor, "action": "deleted"},
                               headers=HEADERS).json()
        self.assertEqual([(e["action"], e["meal_id"], e["name"]) for e in data["events"]],
                         [("deleted", tacos["id"], "Tacos")])
        everything = self.client.get('/api/meals/changes', params={"since": cursor}, headers=HEADERS).json()
        self.assertEqual(data["next_cursor"], everything["next_cursor"])
        self.assertIn(soup["id"], [e["meal_id"] for e in everything["events"]])
        resp = self.client.get('/api/meals/changes', params={"action": "eaten"}, headers=HEADERS)
        self.assertEqual(resp.status_code, 422)

    def test_calendar(self):
        tacos = self._create("Tacos", 10, 2025)
        resp = self.client.get('/api/weeks/calendar', headers=HEADERS)
        self.assertEqual(resp.status_code, 200)
        weeks = resp.json()
        self.assertEqual(len(weeks), 7)
        self.assertEqual([(w["week"], w["year"]) for w in weeks][:3], [(8, 2025), (9, 2025), (10, 2025)])
        current = [w for w in weeks if w["is_current"]]
        self.assertEqual([m["id"] for m in current[0]["meals"]], [tacos["id"]])
        self.assertEqual(current[0]["start"], "2025-03-03")

        resp = self.client.get('/api/weeks/calendar')
        self.assertEqual(resp.status_code, 401)


class TestWeeksAPI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_range(self):
        resp = self.client.get('/api/weeks/range', params={"week": 10, "year": 2025})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual((data["start"], data["end"]), ("2025-03-03", "2025-03-09"))
        self.assertEqual(data["picker_date"], "2025-03-03")
        self.assertEqual(data["label"]["end"], "Mar 9, 2025")

    def test_range_rejects_out_of_range_week(self):
        resp = self.client.get('/api/weeks/range', params={"week": 53, "year": 2025})
        self.assertEqual(resp.status_code, 422)

    def test_from_date(self):
        resp = self.client.get('/api/weeks/from-date', params={"date": "2025-03-05"})
        self.assertEqual((resp.json()["week"], resp.json()["year"]), (10, 2025))
        self.assertEqual(self.client.get('/api/weeks/from-date', params={"date": "nope"}).status_code, 422)

    def test_current_and_quick(self):
        iso = date.today().isocalendar()
        current = self.client.get('/api/weeks/current').json()
        self.assertEqual((current["week"], current["year"]), (min(iso.week, 52), iso.year))
        quick = self.client.get('/api/weeks/quick', params={"offset": 0}).json()
        self.assertEqual((quick["week"], quick["year"]), (current["week"], current["year"]))

    def test_quick_rejects_huge_offset(self):
        resp = self.client.get('/api/weeks/quick', params={"offset": 10 ** 9})
        self.assertEqual(resp.status_code, 422)
        resp = self.client.get('/api/weeks/quick', params={"offset": -10 ** 9})
        self.assertEqual(resp.status_code, 422)
        resp = self.client.get('/api/weeks/quick', params={"offset": QUICK_WEEK_MAX_OFFSET})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(1 <= resp.json()["week"] <= 52)

    def test_options(self):
        data = self.client.get('/api/weeks/options', params={"year": 2025}).json()
        self.assertEqual(len(data["weeks"]), 52)
        self.assertEqual(data["years"], [2024, 2025, 2026, 2027])


if __name__ == '__main__':
    unittest.main()
