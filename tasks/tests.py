import json
from datetime import date
from unittest import mock

from django.apps import apps
from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase

from .errors import TaskValidationError
from .models import Task
from .store import TaskStore
from .validation import clean_update, parse_bool, parse_due_date, parse_task_id

API = "/api/tasks"


class ApiTestMixin:
    def post_json(self, url, data):
        return self.client.post(url, data=json.dumps(data), content_type="application/json")

    def put_json(self, url, data):
        return self.client.put(url, data=json.dumps(data), content_type="application/json")

    def create(self, **data):
        response = self.post_json(API, data)
        self.assertEqual(response.status_code, 201, response.content)
        return response.json()


class ValidationTests(SimpleTestCase):

    def test_parse_task_id(self):
        self.assertEqual(parse_task_id("42"), 42)
        self.assertEqual(parse_task_id(" 7 "), 7)
        for raw in ("abc", "12abc", "-1", "1.5", "", None):
            with self.assertRaises(TaskValidationError):
                parse_task_id(raw)

    def test_parse_bool_truth_table(self):
        for value in (True, 1, 2.5, "1", "true", "TRUE", " yes ", "on", "done", "sometimes", [1], {"a": 1}):
            self.assertIs(parse_bool(value), True, value)
        for value in (False, None, 0, 0.0, "", "  ", "0", "false", "No", "off", "f", "n", [], {}):
            self.assertIs(parse_bool(value), False, value)

    def test_parse_due_date(self):
        self.assertEqual(parse_due_date("2025-11-05"), date(2025, 11, 5))
        self.assertIsNone(parse_due_date(None))
        self.assertIsNone(parse_due_date(""))
        for raw in ("2025-13-01", "05/11/2025", 20251105, "2025-1-5", "2025-01-05T10:00"):
            with self.assertRaises(TaskValidationError):
                parse_due_date(raw)

    def test_clean_update_only_returns_supplied_fields(self):
        self.assertEqual(clean_update({}), {})
        self.assertEqual(clean_update({"title": "  x  "}), {"title": "x"})
        self.assertEqual(clean_update({"completed": "yes"}), {"completed": True})


class TaskStoreTests(TestCase):

    def setUp(self):
        self.store = TaskStore()

    def test_app_config_builds_store(self):
        self.assertIsInstance(apps.get_app_config("tasks").store, TaskStore)

    def test_seed_tasks_present(self):
        titles = set(Task.objects.values_list("title", flat=True))
        self.assertIn("Complete project documentation", titles)
        self.assertIn("Review pull requests", titles)
        self.assertIn("Update dependencies", titles)

    def test_create_defaults(self):
        task = self.store.create(title="Plain")
        self.assertEqual(task.priority, "medium")
        self.assertFalse(task.completed)
        self.assertIsNone(task.description)
        self.assertIsNone(task.due_date)
        self.assertIsNotNone(task.created_at)
        self.assertLessEqual(task.created_at, task.updated_at)

    def test_ids_are_monotonic(self):
        first = self.store.create(title="one")
        second = self.store.create(title="two")
        self.assertGreater(second.id, first.id)

    def test_toggle_twice_restores_state(self):
        task = self.store.create(title="flip")
        self.store.toggle_complete(task)
        self.assertTrue(Task.objects.get(pk=task.id).completed)
        self.store.toggle_complete(task)
        self.assertFalse(Task.objects.get(pk=task.id).completed)

    def test_update_refreshes_updated_at(self):
        task = self.store.create(title="old")
        created_at, updated_at = task.created_at, task.updated_at
        self.store.update(task, title="new")
        task.refresh_from_db()
        self.assertEqual(task.title, "new")
        self.assertEqual(task.created_at, created_at)
        self.assertGreaterEqual(task.updated_at, updated_at)

    def test_delete(self):
        task = self.store.create(title="gone")
        task_id = task.id
        self.assertEqual(self.store.delete(task), task_id)
        self.assertIsNone(self.store.get(task_id))

    def test_schema_rejects_invalid_priority(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            Task.objects.create(title="bad", priority="urgent")

    def test_schema_rejects_empty_title(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            Task.objects.create(title="")

    def test_schema_rejects_whitespace_title(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            Task.objects.create(title="   ")

    def test_store_trims_title(self):
        task = self.store.create(title="  padded  ")
        self.assertEqual(task.title, "padded")
        self.store.update(task, title=" renamed ")
        task.refresh_from_db()
        self.assertEqual(task.title, "renamed")

    def test_list_ordering(self):
        Task.objects.all().delete()
        done = self.store.create(title="done", due_date=date(2025, 1, 1))
        self.store.toggle_complete(done)
        undated = self.store.create(title="undated")
        later = self.store.create(title="later", due_date=date(2025, 11, 10))
        sooner = self.store.create(title="sooner", due_date=date(2025, 11, 5))
        ids = [t.id for t in self.store.list_tasks()]
        self.assertEqual(ids, [sooner.id, later.id, undated.id, done.id])

    def test_list_ignores_unknown_filters(self):
        total = self.store.count()
        self.assertEqual(len(self.store.list_tasks(status="bogus", priority="urgent")), total)

    def test_store_is_closed_at_shutdown(self):
        config = apps.get_app_config("tasks")
        original = config.store
        try:
            with mock.patch("tasks.apps.atexit.register") as register:
                config.ready()
            register.assert_called_once_with(config.store.close)
        finally:
            config.store = original

    def test_close_releases_connection(self):
        with mock.patch("tasks.store.connections") as conns:
            self.store.close()
        conns.__getitem__.assert_called_once_with("default")
        conns.__getitem__.return_value.close.assert_called_once_with()


class ListTasksApiTests(ApiTestMixin, TestCase):

    def setUp(self):
        self.active = self.create(title="Active high", priority="high", description="alpha")
        self.done = self.create(title="Finished low", priority="low", description="UniqueSearchTerm123")
        self.client.patch(f"{API}/{self.done['id']}/complete")

    def test_returns_array(self):
        response = self.client.get(API)
        self.assertEqual(response.status_code, 200)
        self.assertIsInstance(response.json(), list)
        self.assertGreaterEqual(len(response.json()), 5)

    def test_status_active(self):
        tasks = self.client.get(API, {"status": "active"}).json()
        self.assertTrue(tasks)
        self.assertTrue(all(t["completed"] is False for t in tasks))

    def test_status_completed(self):
        tasks = self.client.get(API, {"status": "completed"}).json()
        self.assertEqual([t["id"] for t in tasks], [self.done["id"]])
        self.assertTrue(all(t["completed"] is True for t in tasks))

    def test_priority_filter(self):
        tasks = self.client.get(API, {"priority": "high"}).json()
        self.assertTrue(tasks)
        self.assertTrue(all(t["priority"] == "high" for t in tasks))

    def test_invalid_filters_are_ignored(self):
        everything = self.client.get(API).json()
        response = self.client.get(API, {"status": "whatever", "priority": "urgent"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), len(everything))

    def test_search_title_or_description(self):
        tasks = self.client.get(API, {"search": "UniqueSearchTerm123"}).json()
        self.assertEqual([t["id"] for t in tasks], [self.done["id"]])
        tasks = self.client.get(API, {"search": "Active"}).json()
        self.assertIn(self.active["id"], [t["id"] for t in tasks])
        for t in self.client.get(API, {"search": "alpha"}).json():
            self.assertIn("alpha", (t["title"] + (t["description"] or "")).lower())

    def test_empty_result(self):
        response = self.client.get(API, {"search": "no-such-task-anywhere"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_sort_order_scenario(self):
        later = self.create(title="zz-order later", due_date="2025-11-10")
        sooner = self.create(title="zz-order sooner", due_date="2025-11-05")
        done = self.create(title="zz-order done", due_date="2025-11-01")
        self.client.patch(f"{API}/{done['id']}/complete")
        ids = [t["id"] for t in self.client.get(API, {"search": "zz-order"}).json()]
        self.assertEqual(ids, [sooner["id"], later["id"], done["id"]])

    def test_store_failure_is_generic_500(self):
        with mock.patch.object(TaskStore, "list_tasks", side_effect=RuntimeError("disk on fire")):
            with self.assertLogs("tasks.views", level="ERROR"):
                response = self.client.get(API)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to fetch tasks"})
        self.assertNotIn(b"disk on fire", response.content)


class CreateTaskApiTests(ApiTestMixin, TestCase):

    def test_create_with_all_fields(self):
        response = self.post_json(
            API,
            {
                "title": "  Write tests  ",
                "description": "cover the API",
                "due_date": "2025-12-01",
                "priority": "high",
            },
        )
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["title"], "Write tests")
        self.assertEqual(body["description"], "cover the API")
        self.assertEqual(body["due_date"], "2025-12-01")
        self.assertEqual(body["priority"], "high")
        self.assertIs(body["completed"], False)
        for key in ("id", "created_at", "updated_at"):
            self.assertIn(key, body)

    def test_create_minimal(self):
        response = self.post_json(API, {"title": "Minimal Task"})
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["priority"], "medium")
        self.assertIs(body["completed"], False)
        self.assertIsNone(body["description"])
        self.assertIsNone(body["due_date"])

    def test_missing_or_blank_title(self):
        for payload in ({}, {"title": ""}, {"title": "   "}, {"title": 12}):
            response = self.post_json(API, payload)
            self.assertEqual(response.status_code, 400)
            self.assertIn("title", response.json()["error"].lower())

    def test_invalid_priority(self):
        response = self.post_json(API, {"title": "Task", "priority": "urgent"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("priority", response.json()["error"].lower())

    def test_invalid_due_date(self):
        response = self.post_json(API, {"title": "Task", "due_date": "next week"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("due date", response.json()["error"].lower())
        response = self.post_json(API, {"title": "Task", "due_date": "2025-1-5"})
        self.assertEqual(response.status_code, 400)

    def test_invalid_json_body(self):
        response = self.client.post(API, data="{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())
        response = self.post_json(API, ["a", "list"])
        self.assertEqual(response.status_code, 400)

    def test_title_too_long(self):
        response = self.post_json(API, {"title": "x" * 401})
        self.assertEqual(response.status_code, 400)

    def test_trailing_slash_accepted(self):
        response = self.post_json(API + "/", {"title": "slash"})
        self.assertEqual(response.status_code, 201)

    def test_unsupported_method(self):
        response = self.client.delete(API)
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response["Allow"], "GET, POST")
        self.assertIn("error", response.json())


class UpdateTaskApiTests(ApiTestMixin, TestCase):

    def setUp(self):
        self.task = self.create(title="Original", description="keep me", priority="high", due_date="2025-11-20")

    def url(self, task_id=None):
        return f"{API}/{task_id if task_id is not None else self.task['id']}"

    def test_update_fields(self):
        response = self.put_json(self.url(), {"title": "Updated Title", "priority": "low"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["title"], "Updated Title")
        self.assertEqual(body["priority"], "low")
        self.assertGreaterEqual(body["updated_at"], self.task["updated_at"])

    def test_omitted_fields_are_preserved(self):
        body = self.put_json(self.url(), {"title": "Renamed"}).json()
        self.assertEqual(body["description"], "keep me")
        self.assertEqual(body["priority"], "high")
        self.assertEqual(body["due_date"], "2025-11-20")
        self.assertIs(body["completed"], False)

    def test_fields_can_be_cleared(self):
        body = self.put_json(self.url(), {"description": None, "due_date": None}).json()
        self.assertIsNone(body["description"])
        self.assertIsNone(body["due_date"])

    def test_completed_is_normalized(self):
        self.assertIs(self.put_json(self.url(), {"completed": 1}).json()["completed"], True)
        self.assertIs(self.put_json(self.url(), {"completed": "false"}).json()["completed"], False)
        for value in ("done", [1], {"a": 1}):
            response = self.put_json(self.url(), {"completed": value})
            self.assertEqual(response.status_code, 200)
            self.assertIs(response.json()["completed"], True)
        self.assertIs(self.put_json(self.url(), {"completed": []}).json()["completed"], False)

    def test_not_found(self):
        response = self.put_json(self.url(99999), {"title": "Nope"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Task not found"})

    def test_invalid_id(self):
        response = self.put_json(f"{API}/abc", {"title": "x"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("id", response.json()["error"].lower())

    def test_blank_title(self):
        response = self.put_json(self.url(), {"title": "   "})
        self.assertEqual(response.status_code, 400)
        self.assertIn("title", response.json()["error"].lower())
        self.assertEqual(Task.objects.get(pk=self.task["id"]).title, "Original")

    def test_invalid_priority(self):
        response = self.put_json(self.url(), {"priority": "urgent"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("priority", response.json()["error"].lower())

    def test_store_failure_is_generic_500(self):
        with mock.patch.object(TaskStore, "update", side_effect=RuntimeError("boom")):
            with self.assertLogs("tasks.views", level="ERROR"):
                response = self.put_json(self.url(), {"title": "x"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to update task"})


class ToggleCompleteApiTests(ApiTestMixin, TestCase):

    def test_toggle_twice(self):
        task = self.create(title="Toggle me")
        first = self.client.patch(f"{API}/{task['id']}/complete")
        self.assertEqual(first.status_code, 200)
        self.assertIs(first.json()["completed"], True)
        second = self.client.patch(f"{API}/{task['id']}/complete")
        self.assertIs(second.json()["completed"], False)

    def test_not_found(self):
        response = self.client.patch(f"{API}/99999/complete")
        self.assertEqual(response.status_code, 404)

    def test_invalid_id(self):
        response = self.client.patch(f"{API}/nope/complete")
        self.assertEqual(response.status_code, 400)

    def test_wrong_method(self):
        task = self.create(title="x")
        response = self.client.post(f"{API}/{task['id']}/complete")
        self.assertEqual(response.status_code, 405)


class DeleteTaskApiTests(ApiTestMixin, TestCase):

    def test_delete_then_not_found(self):
        task = self.create(title="Delete me")
        response = self.client.delete(f"{API}/{task['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Task deleted successfully", "id": task["id"]})

        ids = [t["id"] for t in self.client.get(API).json()]
        self.assertNotIn(task["id"], ids)

        again = self.client.delete(f"{API}/{task['id']}")
        self.assertEqual(again.status_code, 404)

    def test_invalid_id(self):
        response = self.client.delete(f"{API}/12abc")
        self.assertEqual(response.status_code, 400)

    def test_validation_errors_do_not_hit_store(self):
        with mock.patch.object(TaskStore, "get") as get:
            self.client.delete(f"{API}/abc")
        get.assert_not_called()
