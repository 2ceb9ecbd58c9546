"""
Rendition cleanup hooks for deleted photos.
"""
import logging
from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver

from . import constants
from .models import ImageAsset
from .tasks import cleanup_renditions_task

logger = logging.getLogger(__name__)


def _schedule_cleanup(content_hash):
    cleanup_renditions_task.apply_async(
        args=[content_hash],
        countdown=constants.cleanup_grace_seconds(),
    )
    logger.info("Scheduled rendition cleanup for %s", content_hash)


@receiver(post_delete, sender=ImageAsset)
def schedule_rendition_cleanup(sender, instance, **kwargs):
    """
    Queue storage cleanup for the deleted photo's hash.

    Fires for commit deletions and for cascades from a deleted product;
    nothing is queued if the surrounding transaction rolls back.
    """
    transaction.on_commit(partial(_schedule_cleanup, instance.content_hash))
