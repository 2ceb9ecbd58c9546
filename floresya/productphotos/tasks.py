import logging

from celery import shared_task

from floresya.errors import StorageError

from .services.cleanup import cleanup_unreferenced, sweep_orphan_renditions

logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(StorageError, OSError), retry_backoff=True, retry_kwargs={"max_retries": 3})
def cleanup_renditions_task(self, content_hash: str) -> int:
    """
    Remove renditions of a deleted photo once nothing references the hash.

    Scheduled from the ImageAsset post_delete signal after the deleting
    transaction commits.
    """
    return cleanup_unreferenced(content_hash)


@shared_task
def sweep_orphan_renditions_task(limit=None, ttl_seconds=None) -> dict:
    """
    Periodic sweep (CELERY_BEAT_SCHEDULE) of uncommitted or forgotten
    renditions older than PHOTO_ORPHAN_TTL_SECONDS.
    """
    report = sweep_orphan_renditions(ttl_seconds=ttl_seconds, limit=limit)
    return {
        'scanned': report.scanned,
        'removed_hashes': report.removed_hashes,
        'removed_files': report.removed_files,
    }
