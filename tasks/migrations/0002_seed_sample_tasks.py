from datetime import date

from django.conf import settings
from django.db import migrations

SAMPLE_TASKS = [
    {
        "title": "Complete project documentation",
        "description": "Write comprehensive docs for the TODO app",
        "priority": "high",
        "due_date": date(2025, 11, 10),
    },
    {
        "title": "Review pull requests",
        "description": "Check and approve pending PRs",
        "priority": "medium",
        "due_date": date(2025, 11, 5),
    },
    {
        "title": "Update dependencies",
        "description": "Run npm audit and update packages",
        "priority": "low",
        "due_date": None,
    },
]


def seed_sample_tasks(apps, schema_editor):
    if not getattr(settings, "TODO_SEED_SAMPLE_TASKS", True):
        return
    Task = apps.get_model("tasks", "Task")
    db_alias = schema_editor.connection.alias
    for sample in SAMPLE_TASKS:
        Task.objects.using(db_alias).create(**sample)


def remove_sample_tasks(apps, schema_editor):
    Task = apps.get_model("tasks", "Task")
    db_alias = schema_editor.connection.alias
    titles = [sample["title"] for sample in SAMPLE_TASKS]
    Task.objects.using(db_alias).filter(title__in=titles).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("tasks", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_sample_tasks, remove_sample_tasks),
    ]
