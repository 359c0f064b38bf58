from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("tasks", "0002_seed_sample_tasks"),
    ]

    operations = [
        migrations.RemoveConstraint(
            model_name="task",
            name="tasks_task_title_not_empty",
        ),
        migrations.AddConstraint(
            model_name="task",
            constraint=models.CheckConstraint(
                condition=models.Q(("title__regex", "^\\s*$"), _negated=True),
                name="tasks_task_title_not_blank",
            ),
        ),
    ]
