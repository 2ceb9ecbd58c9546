"""
Rendition garbage collection.

Renditions may outlive their metadata for a while but never the other way
round, so every removal re-checks that no ImageAsset still points at the
hash.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from django.utils import timezone

from .. import constants
from ..models import ImageAsset
from ..storage import RenditionStore

logger = logging.getLogger(__name__)

SWEEP_BATCH_SIZE = 500


def is_referenced(content_hash: str) -> bool:
    return ImageAsset.objects.filter(content_hash=content_hash).exists()


def cleanup_unreferenced(content_hash: str, store: Optional[RenditionStore] = None) -> int:
    """
    Remove the renditions of ``content_hash`` unless a photo row still uses
    them. Returns the number of files removed.
    """
    store = store or RenditionStore()
    if is_referenced(content_hash):
        logger.debug("Renditions %s still referenced; keeping", content_hash)
        return 0
    grace = constants.cleanup_grace_seconds()
    modified = store.last_modified(content_hash)
    if grace and modified is not None and modified > timezone.now() - timedelta(seconds=grace):
        # Handed out again by an ingest; the sweep collects it if it stays unused
        logger.info("Renditions %s reused within %ss; keeping", content_hash, grace)
        return 0
    removed = store.delete_set(content_hash)
    if removed:
        logger.info("Removed %d renditions of deleted photo %s", removed, content_hash)
    return removed


@dataclass
class SweepReport:
    scanned: int = 0
    removed_hashes: int = 0
    removed_files: int = 0
    kept_referenced: int = 0
    kept_recent: int = 0


def _batched(items: Iterable[str], size: int):
    batch: List[str] = []
    for item in items:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch


def sweep_orphan_renditions(
    store: Optional[RenditionStore] = None,
    ttl_seconds: Optional[int] = None,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> SweepReport:
    """
    Delete stored rendition sets no photo references and that were last
    written more than ``ttl_seconds`` ago (uploads that were ingested but
    never committed, or whose cleanup task was lost).
    """
    store = store or RenditionStore()
    ttl = constants.orphan_ttl_seconds() if ttl_seconds is None else ttl_seconds
    cutoff = (now or timezone.now()) - timedelta(seconds=ttl)
    report = SweepReport()

    for batch in _batched(store.stored_hashes(), SWEEP_BATCH_SIZE):
        if limit is not None and report.removed_hashes >= limit:
            break
        referenced = set(
            ImageAsset.objects.filter(content_hash__in=batch)
            .values_list('content_hash', flat=True)
        )
        for content_hash in batch:
            if limit is not None and report.removed_hashes >= limit:
                break
            report.scanned += 1
            if content_hash in referenced:
                report.kept_referenced += 1
                continue
            modified = store.last_modified(content_hash)
            if modified is not None and modified > cutoff:
                report.kept_recent += 1
                continue
            # Re-check: a commit may have landed since the batch query, or an
            # ingest or commit validation may have just stamped the set
            if is_referenced(content_hash):
                report.kept_referenced += 1
                continue
            modified = store.last_modified(content_hash)
            if modified is not None and modified > cutoff:
                report.kept_recent += 1
                continue
            removed = store.delete_set(content_hash)
            if removed:
                report.removed_files += removed
                report.removed_hashes += 1

    logger.info(
        "Orphan sweep: scanned %d, removed %d sets (%d files), kept %d referenced, %d recent",
        report.scanned, report.removed_hashes, report.removed_files,
        report.kept_referenced, report.kept_recent,
    )
    return report
