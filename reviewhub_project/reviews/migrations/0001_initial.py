import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ReviewAssignment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("assignment_number", models.PositiveIntegerField(unique=True)),
                ("status", models.CharField(choices=[("assigned", "Assigned"), ("submitted", "Submitted"), ("approved", "Approved"), ("cancelled", "Cancelled")], db_index=True, default="assigned", max_length=20)),
                ("assigned_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("due_at", models.DateTimeField()),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("notified_24h", models.BooleanField(default=False)),
                ("notified_6h", models.BooleanField(default=False)),
                ("notified_overdue", models.BooleanField(default=False)),
                ("admin_notes", models.TextField(blank=True)),
                ("reviewer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="review_assignments", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["due_at"],
                "indexes": [models.Index(fields=["status", "due_at"], name="review_status_due_idx")],
            },
        ),
    ]
