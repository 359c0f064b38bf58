import io
from datetime import date
from unittest import mock

import requests
from django.test import LiveServerTestCase, SimpleTestCase

from .api import ApiError, TaskApiClient
from .app import TaskClientApp
from .cli import TaskCLI
from .forms import TaskForm
from .state import (
    EMPTY_FILTERED_MESSAGE,
    EMPTY_STORE_MESSAGE,
    Filters,
    TaskCreated,
    TaskDeleted,
    TaskToggled,
    TaskUpdated,
    apply_event,
    filter_tasks,
    format_date,
    is_due_soon,
    is_past_due,
    priority_label,
    sort_tasks,
)


def make_task(id, title="task", completed=False, priority="medium", due_date=None, description=None,
              created_at="2025-01-01T00:00:00+00:00"):
    return {
        "id": id,
        "title": title,
        "description": description,
        "due_date": due_date,
        "priority": priority,
        "completed": completed,
        "created_at": created_at,
        "updated_at": created_at,
    }


class FakeTaskApi:
    """
    In-memory stand-in for TaskApiClient.

    Records every call; set `fail` to an operation name to make it raise.
    """

    def __init__(self, tasks=None):
        self.tasks = {t["id"]: dict(t) for t in tasks or []}
        self.calls = []
        self.fail = set()
        self.next_id = max(self.tasks, default=0) + 1

    def _check(self, name, message):
        self.calls.append(name)
        if name in self.fail:
            raise ApiError(message, status=500)

    def list_tasks(self, status=None, priority=None, search=None):
        self._check("list", "Failed to fetch tasks")
        return [dict(t) for t in self.tasks.values()]

    def create_task(self, data):
        self._check("create", "Task title is required")
        task = make_task(self.next_id, **{k: v for k, v in data.items() if v is not None})
        self.next_id += 1
        self.tasks[task["id"]] = task
        return dict(task)

    def update_task(self, task_id, updates):
        self._check("update", "Priority must be high, medium, or low")
        self.tasks[task_id].update(updates)
        return dict(self.tasks[task_id])

    def toggle_complete(self, task_id):
        self._check("toggle", "Failed to toggle task completion")
        task = self.tasks[task_id]
        task["completed"] = not task["completed"]
        return dict(task)

    def delete_task(self, task_id):
        self._check("delete", "Failed to delete task")
        del self.tasks[task_id]
        return {"message": "Task deleted successfully", "id": task_id}


class StateTransitionTests(SimpleTestCase):

    def setUp(self):
        self.tasks = [make_task(1, "one"), make_task(2, "two")]

    def test_created_appends(self):
        new = make_task(3, "three")
        result = apply_event(self.tasks, TaskCreated(new))
        self.assertEqual([t["id"] for t in result], [1, 2, 3])
        self.assertEqual(len(self.tasks), 2)

    def test_updated_and_toggled_replace_by_id(self):
        changed = make_task(2, "renamed")
        result = apply_event(self.tasks, TaskUpdated(changed))
        self.assertEqual(result[1]["title"], "renamed")
        self.assertEqual(self.tasks[1]["title"], "two")

        toggled = make_task(1, "one", completed=True)
        result = apply_event(result, TaskToggled(toggled))
        self.assertTrue(result[0]["completed"])

    def test_deleted_removes_by_id(self):
        result = apply_event(self.tasks, TaskDeleted(1))
        self.assertEqual([t["id"] for t in result], [2])

    def test_unknown_event(self):
        with self.assertRaises(TypeError):
            apply_event(self.tasks, object())


class FilterSortTests(SimpleTestCase):

    def setUp(self):
        self.tasks = [
            make_task(1, "Buy milk", priority="low", due_date="2025-11-10"),
            make_task(2, "Write report", priority="high", description="Quarterly NUMBERS", completed=True,
                      due_date="2025-11-01"),
            make_task(3, "Call mom", priority="high"),
            make_task(4, "Pay rent", priority="medium", due_date="2025-11-05",
                      created_at="2025-02-01T00:00:00+00:00"),
        ]

    def ids(self, tasks):
        return [t["id"] for t in tasks]

    def test_status(self):
        self.assertEqual(self.ids(filter_tasks(self.tasks, Filters(status="active"))), [1, 3, 4])
        self.assertEqual(self.ids(filter_tasks(self.tasks, Filters(status="completed"))), [2])
        self.assertEqual(len(filter_tasks(self.tasks, Filters())), 4)

    def test_priority(self):
        self.assertEqual(self.ids(filter_tasks(self.tasks, Filters(priority="high"))), [2, 3])

    def test_search_is_case_insensitive(self):
        self.assertEqual(self.ids(filter_tasks(self.tasks, Filters(search="numbers"))), [2])
        self.assertEqual(self.ids(filter_tasks(self.tasks, Filters(search="MILK"))), [1])

    def test_sort_by_due_date(self):
        self.assertEqual(self.ids(sort_tasks(self.tasks)), [4, 1, 3, 2])

    def test_sort_by_priority(self):
        self.assertEqual(self.ids(sort_tasks(self.tasks, "priority")), [3, 4, 1, 2])

    def test_sort_by_created(self):
        self.assertEqual(self.ids(sort_tasks(self.tasks, "created"))[0], 4)
        self.assertEqual(self.ids(sort_tasks(self.tasks, "created"))[-1], 2)

    def test_unknown_sort_keeps_order(self):
        self.assertEqual(self.ids(sort_tasks(self.tasks, "bogus")), [1, 2, 3, 4])

    def test_filters_active_flag(self):
        self.assertFalse(Filters().active)
        self.assertTrue(Filters(status="active").active)
        self.assertTrue(Filters(priority="low").active)
        self.assertTrue(Filters(search="x").active)


class DisplayHelperTests(SimpleTestCase):

    def test_format_date(self):
        self.assertEqual(format_date("2025-11-05"), "Nov 5, 2025")
        self.assertEqual(format_date(None), "No due date")

    def test_due_flags(self):
        today = date(2025, 11, 5)
        self.assertTrue(is_past_due("2025-11-04", today=today))
        self.assertFalse(is_past_due("2025-11-05", today=today))
        self.assertTrue(is_due_soon("2025-11-05", today=today))
        self.assertTrue(is_due_soon("2025-11-08", today=today))
        self.assertFalse(is_due_soon("2025-11-09", today=today))
        self.assertFalse(is_due_soon(None, today=today))

    def test_priority_label(self):
        self.assertEqual(priority_label("high"), "High")
        self.assertEqual(priority_label("weird"), "Medium")


class TaskFormTests(SimpleTestCase):

    def test_blank_title_is_rejected(self):
        self.assertEqual(TaskForm(title="   ").validate(), {"title": "Title is required"})
        self.assertEqual(TaskForm(title="ok").validate(), {})

    def test_payload_is_trimmed(self):
        form = TaskForm(title="  Plan trip ", description=" soon ", due_date=date(2025, 12, 1), priority="low")
        self.assertEqual(
            form.to_payload(),
            {"title": "Plan trip", "description": "soon", "due_date": "2025-12-01", "priority": "low"},
        )

    def test_from_task(self):
        form = TaskForm.from_task(make_task(5, "Edit me", due_date="2025-11-05", priority="high"))
        self.assertEqual(form.title, "Edit me")
        self.assertEqual(form.description, "")
        self.assertEqual(form.to_payload()["due_date"], "2025-11-05")
        self.assertEqual(TaskForm.from_task(None), TaskForm())


class TaskClientAppTests(SimpleTestCase):

    def setUp(self):
        self.api = FakeTaskApi([
            make_task(1, "Buy milk", due_date="2025-11-10"),
            make_task(2, "Pay rent", priority="high", due_date="2025-11-05"),
        ])
        self.app = TaskClientApp(self.api)
        self.app.load()

    def test_load(self):
        self.assertEqual(len(self.app.tasks), 2)
        self.assertFalse(self.app.loading)
        self.assertFalse(self.app.notification.open)

    def test_load_failure_leaves_list_empty(self):
        api = FakeTaskApi([make_task(1)])
        api.fail.add("list")
        app = TaskClientApp(api)
        with self.assertLogs("todo_client.app", level="ERROR"):
            app.load()
        self.assertEqual(app.tasks, [])
        self.assertEqual(app.notification.message, "Failed to load tasks")
        self.assertEqual(app.notification.severity, "error")

    def test_filters_do_not_refetch(self):
        self.app.set_filters(priority="high")
        self.assertEqual([t["id"] for t in self.app.visible_tasks()], [2])
        self.app.set_filters(search="milk", priority="")
        self.assertEqual([t["id"] for t in self.app.visible_tasks()], [1])
        self.assertEqual(self.api.calls.count("list"), 1)

    def test_empty_messages(self):
        self.app.set_filters(search="nothing matches")
        self.assertEqual(self.app.visible_tasks(), [])
        self.assertEqual(self.app.empty_message(), EMPTY_FILTERED_MESSAGE)
        self.app.clear_filters()
        self.app.tasks = []
        self.assertEqual(self.app.empty_message(), EMPTY_STORE_MESSAGE)

    def test_create(self):
        form = self.app.open_create()
        self.assertIsNone(self.app.editing_task)
        form.title = "New one"
        self.assertTrue(self.app.submit(form))
        self.assertEqual(self.app.tasks[-1]["title"], "New one")
        self.assertEqual(self.app.notification.message, "Task created successfully")
        self.assertFalse(self.app.dialog_open)

    def test_create_blocked_by_form_validation(self):
        form = self.app.open_create()
        self.assertFalse(self.app.submit(form))
        self.assertEqual(self.app.form_errors, {"title": "Title is required"})
        self.assertNotIn("create", self.api.calls)
        self.assertTrue(self.app.dialog_open)

    def test_update_replaces_by_id(self):
        form = self.app.open_edit(self.app.find(1))
        form.title = "Buy oat milk"
        self.assertTrue(self.app.submit(form))
        self.assertEqual(self.app.find(1)["title"], "Buy oat milk")
        self.assertEqual(len(self.app.tasks), 2)
        self.assertEqual(self.app.notification.message, "Task updated successfully")

    def test_update_failure_shows_server_message(self):
        self.api.fail.add("update")
        form = self.app.open_edit(self.app.find(1))
        self.assertFalse(self.app.submit(form))
        self.assertEqual(self.app.notification.message, "Priority must be high, medium, or low")
        self.assertEqual(self.app.notification.severity, "error")
        self.assertTrue(self.app.dialog_open)

    def test_toggle(self):
        self.assertTrue(self.app.toggle_complete(1))
        self.assertTrue(self.app.find(1)["completed"])
        self.assertEqual(self.app.notification.message, "Task completed")
        self.assertEqual(self.app.notification.severity, "info")
        self.app.toggle_complete(1)
        self.assertEqual(self.app.notification.message, "Task reopened")

    def test_toggle_failure(self):
        self.api.fail.add("toggle")
        self.assertFalse(self.app.toggle_complete(1))
        self.assertEqual(self.app.notification.message, "Failed to update task")

    def test_delete_requires_confirmation(self):
        self.assertFalse(self.app.delete(1, confirm=lambda task: False))
        self.assertNotIn("delete", self.api.calls)
        self.assertTrue(self.app.delete(1, confirm=lambda task: task["title"] == "Buy milk"))
        self.assertIsNone(self.app.find(1))
        self.assertEqual(self.app.notification.message, "Task deleted successfully")

    def test_delete_failure_keeps_task(self):
        self.api.fail.add("delete")
        self.assertFalse(self.app.delete(1))
        self.assertIsNotNone(self.app.find(1))
        self.assertEqual(self.app.notification.message, "Failed to delete task")


class TaskApiClientTests(SimpleTestCase):

    def response(self, status, body):
        resp = mock.Mock(status_code=status, ok=200 <= status < 300)
        resp.json.return_value = body
        return resp

    def test_error_message_from_server(self):
        session = mock.Mock()
        session.request.return_value = self.response(400, {"error": "Task title is required"})
        client = TaskApiClient("http://api.test/", session=session)
        with self.assertRaises(ApiError) as ctx:
            client.create_task({"title": ""})
        self.assertEqual(ctx.exception.message, "Task title is required")
        self.assertEqual(ctx.exception.status, 400)
        session.request.assert_called_once_with("POST", "http://api.test/api/tasks", json={"title": ""})

    def test_fallback_message(self):
        session = mock.Mock()
        resp = self.response(502, None)
        resp.json.side_effect = ValueError("not json")
        session.request.return_value = resp
        with self.assertRaises(ApiError) as ctx:
            TaskApiClient("http://api.test", session=session).delete_task(3)
        self.assertEqual(ctx.exception.message, "Failed to delete task")

    def test_transport_failure(self):
        session = mock.Mock()
        session.request.side_effect = requests.ConnectionError("refused")
        with self.assertLogs("todo_client.api", level="ERROR"):
            with self.assertRaises(ApiError) as ctx:
                TaskApiClient("http://api.test", session=session).list_tasks()
        self.assertEqual(ctx.exception.message, "Failed to fetch tasks")
        self.assertIsNone(ctx.exception.status)

    def test_list_params(self):
        session = mock.Mock()
        session.request.return_value = self.response(200, [])
        TaskApiClient("http://api.test", session=session).list_tasks(status="active", search="milk")
        session.request.assert_called_once_with(
            "GET", "http://api.test/api/tasks", params={"status": "active", "search": "milk"}
        )


def scripted(lines):
    it = iter(lines)

    def _input(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    return _input


class TaskCLITests(SimpleTestCase):

    def run_cli(self, lines, api=None):
        api = api or FakeTaskApi([make_task(1, "Buy milk", due_date="2025-11-10")])
        out = io.StringIO()
        TaskCLI(TaskClientApp(api), input_fn=scripted(lines), out=out).run()
        return api, out.getvalue()

    def test_add_and_quit(self):
        api, output = self.run_cli(["add", "Call mom", "", "2025-11-05", "high", "quit"])
        self.assertIn("Call mom", [t["title"] for t in api.tasks.values()])
        self.assertIn("Task created successfully", output)
        self.assertIn("Goodbye.", output)

    def test_add_blank_title_shows_inline_error(self):
        api, output = self.run_cli(["add", "", "", "", "", "quit"])
        self.assertIn("title: Title is required", output)
        self.assertNotIn("create", api.calls)

    def test_toggle_filter_and_delete(self):
        api, output = self.run_cli(["done 1", "status completed", "rm 1", "y", "clear"])
        self.assertIn("Task completed", output)
        self.assertIn("Task deleted successfully", output)
        self.assertIn("No tasks match your filters", output)
        self.assertEqual(api.tasks, {})

    def test_edit_clears_optional_fields(self):
        api = FakeTaskApi([make_task(1, "Buy milk", due_date="2025-11-10", description="2 litres")])
        api, output = self.run_cli(["edit 1", "", "-", "-", "", "quit"], api=api)
        task = api.tasks[1]
        self.assertEqual(task["title"], "Buy milk")
        self.assertIsNone(task["due_date"])
        self.assertEqual(task["description"], "")
        self.assertIn("Task updated successfully", output)

    def test_edit_keeps_values_on_enter(self):
        api = FakeTaskApi([make_task(1, "Buy milk", due_date="2025-11-10", description="2 litres")])
        api, _ = self.run_cli(["edit 1", "", "", "", "high", "quit"], api=api)
        task = api.tasks[1]
        self.assertEqual(task["due_date"], "2025-11-10")
        self.assertEqual(task["description"], "2 litres")
        self.assertEqual(task["priority"], "high")

    def test_unknown_id_and_command(self):
        _, output = self.run_cli(["done 42", "frobnicate"])
        self.assertIn("No task with id 42.", output)
        self.assertIn("Unknown command", output)


class TaskApiClientLiveTests(LiveServerTestCase):
    """End-to-end: the HTTP client against the running Django app."""

    serialized_rollback = True

    def setUp(self):
        self.api = TaskApiClient(self.live_server_url)

    def tearDown(self):
        self.api.close()

    def test_full_lifecycle(self):
        created = self.api.create_task({"title": "Minimal Task"})
        self.assertEqual(created["priority"], "medium")
        self.assertIs(created["completed"], False)

        updated = self.api.update_task(created["id"], {"description": "with details"})
        self.assertEqual(updated["title"], "Minimal Task")
        self.assertEqual(updated["description"], "with details")

        toggled = self.api.toggle_complete(created["id"])
        self.assertIs(toggled["completed"], True)
        completed_ids = [t["id"] for t in self.api.list_tasks(status="completed")]
        self.assertIn(created["id"], completed_ids)

        deleted = self.api.delete_task(created["id"])
        self.assertEqual(deleted["id"], created["id"])
        self.assertNotIn(created["id"], [t["id"] for t in self.api.list_tasks()])

    def test_server_errors_become_api_errors(self):
        with self.assertRaises(ApiError) as ctx:
            self.api.create_task({"title": "Task", "priority": "urgent"})
        self.assertEqual(ctx.exception.status, 400)
        self.assertIn("Priority", ctx.exception.message)

        with self.assertRaises(ApiError) as ctx:
            self.api.toggle_complete(99999)
        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(ctx.exception.message, "Task not found")

    def test_app_against_live_server(self):
        app = TaskClientApp(self.api)
        app.load()
        form = app.open_create()
        form.title = "From the client"
        self.assertTrue(app.submit(form))
        self.assertEqual(app.tasks[-1]["title"], "From the client")
