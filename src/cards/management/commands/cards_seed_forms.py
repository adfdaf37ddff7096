import json
from importlib import resources

from django.core.management.base import BaseCommand

from src.cards.models import CardFormType
from src.cards.registry.selectors import registered_form_names
from src.cards.registry.services import form_register

CANONICAL_FORMS = (
    ("Entity CARD", CardFormType.ENTITY, "entity.schema.json"),
    ("Data CARD", CardFormType.DATA, "data.schema.json"),
    ("Use CARD", CardFormType.USE, "use.schema.json"),
)


def load_bundled_schema(filename: str) -> dict:
    with resources.files("src.cards.form_schemas").joinpath(filename).open("rb") as f:
        return json.load(f)


class Command(BaseCommand):
    help = "Register the canonical entity, data and use forms through the system path."

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Only list what would be registered")

    def handle(self, *args, **options):
        existing = registered_form_names()
        created = 0
        for name, form_type, filename in CANONICAL_FORMS:
            if name in existing:
                self.stdout.write(f"skip  {name} (already registered)")
                continue
            if options["dry_run"]:
                self.stdout.write(f"would register  {name} ({form_type})")
                continue
            form = form_register(
                name=name,
                form_type=form_type.value,
                schema_definition=load_bundled_schema(filename),
                actor=None,
            )
            created += 1
            self.stdout.write(self.style.SUCCESS(f"registered  {name} -> {form.id}"))

        self.stdout.write(f"{created} form(s) registered")
