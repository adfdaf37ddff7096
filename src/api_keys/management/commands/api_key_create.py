import json
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from src.api_keys.presenters import api_key_created_dto
from src.api_keys.services import api_key_create


class Command(BaseCommand):
    help = "Mint a service API key. The plain key is printed once and never stored."

    def add_arguments(self, parser):
        parser.add_argument("--name", required=True, help="Human readable key name")
        parser.add_argument(
            "--permission",
            dest="permissions",
            action="append",
            default=[],
            help="Permission token, repeatable (e.g. forms:register)",
        )
        parser.add_argument("--expires-days", type=int, default=None)
        parser.add_argument("--created-by", dest="created_by", help="Email of the member minting the key")

    def handle(self, *args, **options):
        created_by = None
        if options.get("created_by"):
            User = get_user_model()
            created_by = User.objects.filter(email__iexact=options["created_by"]).first()
            if created_by is None:
                raise CommandError(f"No member with email {options['created_by']}")

        expires_at = None
        if options.get("expires_days"):
            expires_at = timezone.now() + timedelta(days=options["expires_days"])

        api_key, plain_key = api_key_create(
            created_by=created_by,
            name=options["name"],
            permissions=options["permissions"],
            expires_at=expires_at,
        )
        self.stdout.write(json.dumps(api_key_created_dto(api_key, plain_key), default=str, indent=2))
        self.stdout.write(self.style.WARNING("Store the plain key now; it cannot be shown again."))
