"""
Management command to add the default categories and units
"""
from django.core.management.base import BaseCommand
from tenderdesk.catalog.defaults import seed_default_settings


class Command(BaseCommand):
    help = "Adds the default material categories and units when none exist"

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 60))
        self.stdout.write(self.style.SUCCESS("SEEDING DEFAULT SETTINGS"))
        self.stdout.write(self.style.SUCCESS("=" * 60))

        result = seed_default_settings()

        if result['categories']:
            self.stdout.write(self.style.SUCCESS(f"Created {result['categories']} categories."))
        else:
            self.stdout.write(self.style.WARNING("Categories already exist, skipped."))
        if result['units']:
            self.stdout.write(self.style.SUCCESS(f"Created {result['units']} units."))
        else:
            self.stdout.write(self.style.WARNING("Units already exist, skipped."))
