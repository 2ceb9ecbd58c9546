from django.core.management.base import BaseCommand

from productphotos.services.cleanup import sweep_orphan_renditions


class Command(BaseCommand):
    """
    Removes stored renditions that no photo references once they are older
    than the orphan TTL. Runs the sweep in-process by default; ``--enqueue``
    hands it to Celery instead.
    """
    help = 'Sweep unreferenced product photo renditions'

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=None,
            help='Maximum number of rendition sets to delete in this run'
        )
        parser.add_argument(
            '--ttl',
            type=int,
            default=None,
            help='Override PHOTO_ORPHAN_TTL_SECONDS (seconds)'
        )
        parser.add_argument(
            '--enqueue',
            action='store_true',
            help='Send the sweep to Celery instead of running it here'
        )

    def handle(self, *args, **options):
        limit = options.get('limit')
        if options.get('enqueue'):
            from productphotos.tasks import sweep_orphan_renditions_task

            sweep_orphan_renditions_task.delay(limit=limit, ttl_seconds=options.get('ttl'))
            self.stdout.write(self.style.SUCCESS('Orphan rendition sweep enqueued.'))
            return

        report = sweep_orphan_renditions(ttl_seconds=options.get('ttl'), limit=limit)
        self.stdout.write(self.style.SUCCESS(
            f'Scanned {report.scanned} rendition sets, removed {report.removed_hashes} '
            f'({report.removed_files} files); kept {report.kept_referenced} referenced, '
            f'{report.kept_recent} recent.'
        ))
