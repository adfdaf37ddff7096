import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

ISSUANCE_STATUS_CHOICES = [
    ("issued", "Issued"),
    ("accepted", "Accepted"),
    ("rejected", "Rejected"),
    ("revoked", "Revoked"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CardForm",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255)),
                ("form_type", models.CharField(choices=[("entity", "Entity"), ("data", "Data"), ("use", "Use")], db_index=True, max_length=16)),
                ("schema_definition", models.JSONField(help_text="JSON Schema the payloads must satisfy")),
                ("status", models.CharField(choices=[("draft", "Draft"), ("registered", "Registered")], db_index=True, default="draft", max_length=16)),
                ("registered_at", models.DateTimeField(blank=True, null=True)),
                ("registered_by", models.ForeignKey(blank=True, help_text="NULL for system registrations", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="registered_card_forms", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "card_forms",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="CardInstance",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("payload", models.JSONField()),
                ("lineage_id", models.UUIDField(db_index=True, help_text="Id of the first version")),
                ("version", models.PositiveIntegerField(default=1, help_text="1-based position in the lineage")),
                ("is_current", models.BooleanField(default=True)),
                ("superseded_at", models.DateTimeField(blank=True, null=True)),
                ("form", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="instances", to="cards.cardform")),
                ("owner", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="card_instances", to=settings.AUTH_USER_MODEL)),
                ("superseded_by", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="supersedes", to="cards.cardinstance")),
            ],
            options={
                "db_table": "card_instances",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("is_current", True)), fields=("lineage_id",), name="card_instance_single_current"),
                    models.UniqueConstraint(fields=("lineage_id", "version"), name="card_instance_lineage_version_unique"),
                    models.CheckConstraint(condition=models.Q(("superseded_by__isnull", True), ("is_current", False), _connector="OR"), name="card_instance_superseded_not_current"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CardIssuance",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("invitee_locator", models.CharField(blank=True, max_length=320, null=True)),
                ("status", models.CharField(choices=ISSUANCE_STATUS_CHOICES, db_index=True, default="issued", max_length=16)),
                ("issued_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("revoked_at", models.DateTimeField(blank=True, null=True)),
                ("instance", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="issuances", to="cards.cardinstance")),
                ("issuer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="issued_cards", to=settings.AUTH_USER_MODEL)),
                ("recipient_member", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="received_cards", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "card_issuances",
                "ordering": ["-issued_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("invitee_locator__isnull", True), ("recipient_member__isnull", False)),
                            models.Q(("invitee_locator__isnull", False), ("recipient_member__isnull", True)),
                            _connector="OR",
                        ),
                        name="card_issuance_one_recipient",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CardDelivery",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("invitee_locator", models.CharField(blank=True, max_length=320, null=True)),
                ("status", models.CharField(choices=ISSUANCE_STATUS_CHOICES, db_index=True, default="issued", max_length=16)),
                ("issuance", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="delivery", to="cards.cardissuance")),
                ("recipient_member", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="card_deliveries", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "card_deliveries",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("invitee_locator__isnull", True), ("recipient_member__isnull", False)),
                            models.Q(("invitee_locator__isnull", False), ("recipient_member__isnull", True)),
                            _connector="OR",
                        ),
                        name="card_delivery_one_recipient",
                    ),
                ],
            },
        ),
    ]
