"""Terminal front end for the TODO list.

Loads the list once, then renders the locally filtered view after every
command. Filters never trigger a refetch.
"""

import argparse
import logging
import os
import sys

from .api import DEFAULT_BASE_URL, TaskApiClient
from .app import TaskClientApp
from .state import (
    PRIORITY_LABELS,
    STATUS_CHOICES,
    format_date,
    is_due_soon,
    is_past_due,
    priority_label,
)

SEVERITY_PREFIX = {"success": "OK", "info": "--", "error": "!!"}

# answer that empties an optional field while editing
CLEAR_VALUE = "-"

HELP_TEXT = """\
Commands:
  add                 Add a task (prompts for each field)
  edit <id>           Edit a task; Enter keeps a value, '-' clears it
  done <id>           Toggle completion
  rm <id>             Delete a task (asks for confirmation)
  status <s>          Filter by status: all, active, completed
  prio <p>            Filter by priority: high, medium, low, all
  find <text...>      Search title and description; 'find' alone clears it
  clear               Clear all filters
  help                Show this help
  quit                Exit"""


class TaskCLI:
    def __init__(self, app, input_fn=input, out=None):
        self.app = app
        self.input = input_fn
        self.out = out or sys.stdout

    def echo(self, text=""):
        print(text, file=self.out)

    def run(self):
        self.app.load()
        try:
            while True:
                self.render()
                line = self.input("\n> ").strip()
                if not line:
                    continue
                if line.lower() in ("quit", "exit", "q"):
                    break
                self.handle(line)
        except (KeyboardInterrupt, EOFError):
            self.echo()
        self.echo("Goodbye.")

    # ---- rendering ----

    def render(self):
        f = self.app.filters
        self.echo()
        self.echo(
            f"TODO App  [status: {f.status}  priority: {f.priority or 'all'}  search: {f.search or '-'}]"
        )
        tasks = self.app.visible_tasks()
        if self.app.loading:
            self.echo("Loading...")
        elif not tasks:
            self.echo(self.app.empty_message())
        for task in tasks:
            self.echo(self.format_task(task))

        note = self.app.notification
        if note.open:
            self.echo(f"{SEVERITY_PREFIX.get(note.severity, '--')} {note.message}")
            self.app.dismiss_notification()

    @staticmethod
    def format_task(task):
        done = bool(task.get("completed"))
        mark = "[x]" if done else "[ ]"
        due = ""
        if task.get("due_date"):
            due = f"  due {format_date(task['due_date'])}"
            if not done and is_past_due(task["due_date"]):
                due += " (overdue)"
            elif not done and is_due_soon(task["due_date"]):
                due += " (soon)"
        line = f"{task['id']:>4} {mark} {task['title']}  <{priority_label(task.get('priority'))}>{due}"
        if task.get("description"):
            line += f"\n          {task['description']}"
        return line

    # ---- commands ----

    def handle(self, line):
        tokens = line.split()
        cmd, args = tokens[0].lower(), tokens[1:]
        if cmd == "help":
            self.echo(HELP_TEXT)
        elif cmd == "add":
            self._add()
        elif cmd == "edit":
            self._with_id(args, self._edit)
        elif cmd == "done":
            self._with_id(args, self.app.toggle_complete)
        elif cmd == "rm":
            self._with_id(args, lambda task_id: self.app.delete(task_id, confirm=self._confirm_delete))
        elif cmd == "status":
            if len(args) != 1 or args[0].lower() not in STATUS_CHOICES:
                self.echo("Usage: status all|active|completed")
                return
            self.app.set_filters(status=args[0].lower())
        elif cmd == "prio":
            value = args[0].lower() if len(args) == 1 else None
            if value == "all":
                self.app.set_filters(priority="")
            elif value in PRIORITY_LABELS:
                self.app.set_filters(priority=value)
            else:
                self.echo("Usage: prio high|medium|low|all")
        elif cmd == "find":
            self.app.set_filters(search=" ".join(args))
        elif cmd == "clear":
            self.app.clear_filters()
        else:
            self.echo("Unknown command. Type 'help' for instructions.")

    def _with_id(self, args, action):
        if len(args) != 1 or not args[0].isdigit():
            self.echo("Usage: <command> <id>")
            return
        task_id = int(args[0])
        if self.app.find(task_id) is None:
            self.echo(f"No task with id {task_id}.")
            return
        action(task_id)

    def _confirm_delete(self, task):
        answer = self.input(f"Delete '{task['title']}'? [y/N] ").strip().lower()
        return answer in ("y", "yes")

    def _prompt(self, label, current="", clearable=False):
        suffix = f" [{current}]" if current else ""
        if clearable and current:
            suffix += f" ('{CLEAR_VALUE}' clears)"
        value = self.input(f"{label}{suffix}: ").strip()
        if clearable and value == CLEAR_VALUE:
            return ""
        return value or current

    def _fill_form(self, form):
        form.title = self._prompt("Title", form.title)
        form.description = self._prompt("Description", form.description, clearable=True)
        form.due_date = self._prompt("Due date (YYYY-MM-DD)", form.due_date or "", clearable=True) or None
        priority = self._prompt("Priority (high/medium/low)", form.priority).lower()
        form.priority = priority
        return form

    def _submit(self, form):
        if not self.app.submit(form):
            for field, message in self.app.form_errors.items():
                self.echo(f"{field}: {message}")
            self.app.close_dialog()

    def _add(self):
        form = self._fill_form(self.app.open_create())
        self._submit(form)

    def _edit(self, task_id):
        form = self._fill_form(self.app.open_edit(self.app.find(task_id)))
        self._submit(form)


def main(argv=None):
    parser = argparse.ArgumentParser(prog="todo-client", description="Terminal TODO list client")
    parser.add_argument(
        "--url",
        default=os.getenv("TODO_API_URL", DEFAULT_BASE_URL),
        help="base URL of the TODO API (default: %(default)s)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output to stderr")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    api = TaskApiClient(args.url)
    try:
        TaskCLI(TaskClientApp(api)).run()
    finally:
        api.close()
    return 0
