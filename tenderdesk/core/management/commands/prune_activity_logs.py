"""
Management command to keep the activity log bounded
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from tenderdesk.core.models import ActivityLog


class Command(BaseCommand):
    help = "Deletes the oldest activity log entries beyond the newest N"

    def add_arguments(self, parser):
        parser.add_argument(
            '--keep',
            type=int,
            default=getattr(settings, 'ACTIVITY_LOG_KEEP', 1000),
            help='Number of most recent entries to keep (default: 1000)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only report how many entries would be deleted',
        )

    def handle(self, *args, **options):
        keep = max(options['keep'], 0)
        dry_run = options['dry_run']

        total = ActivityLog.objects.count()
        if total <= keep:
            self.stdout.write(self.style.SUCCESS(f"Nothing to prune ({total} entries, keeping {keep})."))
            return

        keep_ids = list(
            ActivityLog.objects.order_by('-created_at', '-id').values_list('id', flat=True)[:keep]
        )
        stale = ActivityLog.objects.exclude(id__in=keep_ids)

        if dry_run:
            self.stdout.write(self.style.WARNING(f"Would delete {stale.count()} of {total} entries."))
            return

        deleted, _ = stale.delete()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} activity log entries, kept {total - deleted}."))
