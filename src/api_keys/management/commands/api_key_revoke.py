from django.core.management.base import BaseCommand, CommandError

from src.api_keys.models import APIKey
from src.api_keys.services import api_key_revoke


class Command(BaseCommand):
    help = "Deactivate a service API key by its prefix."

    def add_arguments(self, parser):
        parser.add_argument("prefix", help="First 12 characters of the key")

    def handle(self, *args, **options):
        try:
            api_key = api_key_revoke(key_prefix=options["prefix"])
        except APIKey.DoesNotExist:
            raise CommandError(f"No API key with prefix {options['prefix']}")
        self.stdout.write(self.style.SUCCESS(f"Revoked {api_key}"))
