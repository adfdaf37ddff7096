import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("action", models.CharField(choices=[
                    ("form_registered", "A new CARD form was registered"),
                    ("form_drafted", "A CARD form was saved as draft"),
                    ("instance_created", "A CARD instance was created"),
                    ("instance_create_blocked_unregistered_form", "A CARD creation was blocked, form was not registered"),
                    ("card_superseded", "A CARD was revised into a new version"),
                    ("card_issued", "A CARD was issued to a recipient"),
                    ("card_accepted", "The recipient accepted a CARD"),
                    ("card_rejected", "The recipient declined a CARD"),
                    ("card_revoked", "Access to a CARD was revoked"),
                    ("verification_queried", "An agent's authorization was verified"),
                    ("api_key_created", "Service key created"),
                    ("api_key_revoked", "Service key revoked"),
                ], db_index=True, max_length=64)),
                ("entity_type", models.CharField(choices=[
                    ("card_form", "CARD form"),
                    ("card_instance", "CARD instance"),
                    ("card_issuance", "CARD issuance"),
                    ("api_key", "API key"),
                ], max_length=32)),
                ("entity_id", models.CharField(help_text="Id of the affected row", max_length=64)),
                ("lifecycle_context", models.JSONField(blank=True, default=dict)),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True)),
                ("request_id", models.CharField(blank=True, max_length=64)),
                ("actor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="audit_actions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "audit_log",
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddIndex(
            model_name="auditlog",
            index=models.Index(fields=["entity_type", "entity_id", "created_at"], name="audit_entity_idx"),
        ),
        migrations.AddIndex(
            model_name="auditlog",
            index=models.Index(fields=["actor", "-created_at"], name="audit_actor_idx"),
        ),
    ]
