"""
Atomic commit of a PhotoEditSession.

The only code that writes ImageAsset rows. One commit = one transaction:
version bump, deletions, insertions, order rewrite, primary flag. Either
all of it lands or none of it does.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from django.db import transaction
from django.db.models import F, Max
from django.utils import timezone

from floresya.errors import (
    ImageLimitExceeded,
    NotFoundError,
    StaleSnapshotError,
    ValidationError,
)
from storefront.models import Product

from .. import constants
from ..models import ImageAsset
from ..storage import RenditionStore
from .edit_session import EffectivePhoto, PendingChangeSet, PhotoEditSession, SessionState
from .snapshot import CommittedPhoto

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    product_id: int
    version: int
    photos: Tuple[CommittedPhoto, ...]


class PhotoCommitCoordinator:
    def __init__(self, store: Optional[RenditionStore] = None):
        self.store = store or RenditionStore()

    # -- validation -----------------------------------------------------

    def validate(self, view: List[EffectivePhoto], change_set: PendingChangeSet) -> None:
        limit = constants.max_photos_per_product()
        if len(view) > limit:
            raise ImageLimitExceeded(limit=limit, attempted=len(view))

        primaries = [photo.ref for photo in view if photo.is_primary]
        expected = 1 if view else 0
        if len(primaries) != expected:
            raise ValidationError(
                "Photo set must have exactly one primary photo.",
                field='primary',
                primaries=primaries,
            )

        orders = [photo.display_order for photo in view]
        if sorted(orders) != list(range(1, len(view) + 1)):
            raise ValidationError("Display order must run from 1 without gaps.", field='order', orders=orders)

        self._check_renditions(change_set, refresh=True)

    def _check_renditions(self, change_set: PendingChangeSet, refresh: bool = False) -> None:
        for addition in change_set.additions:
            content_hash = addition.descriptor.content_hash
            missing = self.store.missing_sizes(content_hash)
            if missing:
                raise ValidationError(
                    "Photo was not ingested or its renditions are gone.",
                    field='additions',
                    content_hash=content_hash,
                    missing=missing,
                )
            if refresh:
                # Keeps the sweep and cleanup tasks off the set until the rows land
                self.store.touch(content_hash)

    # -- apply ----------------------------------------------------------

    def _lock_and_bump(self, product_id: int, base_version: int) -> int:
        current = (
            Product.objects.select_for_update()
            .filter(pk=product_id)
            .values_list('photo_version', flat=True)
            .first()
        )
        if current is None:
            raise NotFoundError(product_id=product_id)
        updated = (
            Product.objects
            .filter(pk=product_id, photo_version=base_version)
            .update(photo_version=F('photo_version') + 1, updated_at=timezone.now())
        )
        if not updated:
            raise StaleSnapshotError(
                product_id=product_id,
                base_version=base_version,
                current_version=current,
            )
        return base_version + 1

    def _delete(self, product_id: int, change_set: PendingChangeSet) -> None:
        if not change_set.deletions:
            return
        # post_delete schedules rendition cleanup once the transaction commits
        deleted, _ = ImageAsset.objects.filter(
            product_id=product_id,
            pk__in=change_set.deletions,
        ).delete()
        if deleted != len(change_set.deletions):
            raise StaleSnapshotError(product_id=product_id, base_version=change_set.base_snapshot_version)

    def _park_survivors(self, product_id: int, size: int) -> None:
        """Move surviving rows above the final 1..N range and drop primary."""
        top = ImageAsset.objects.filter(product_id=product_id).aggregate(top=Max('display_order'))['top']
        if top is None:
            return
        ImageAsset.objects.filter(product_id=product_id).update(
            display_order=F('display_order') + top + size,
            is_primary=False,
        )

    def _insert_additions(self, product_id: int, view: List[EffectivePhoto], change_set: PendingChangeSet) -> None:
        descriptors = {addition.ref: addition.descriptor for addition in change_set.additions}
        for photo in view:
            if not photo.is_new:
                continue
            descriptor = descriptors[photo.ref]
            ImageAsset.objects.create(
                product_id=product_id,
                content_hash=descriptor.content_hash,
                renditions=descriptor.renditions,
                display_order=photo.display_order,
                is_primary=photo.is_primary,
            )

    def _rewrite_survivors(self, product_id: int, view: List[EffectivePhoto]) -> None:
        targets: Dict[int, EffectivePhoto] = {
            photo.asset_id: photo for photo in view if not photo.is_new
        }
        survivors = list(ImageAsset.objects.filter(product_id=product_id, pk__in=targets.keys()))
        if len(survivors) != len(targets):
            raise StaleSnapshotError(product_id=product_id)
        for asset in survivors:
            target = targets[asset.pk]
            asset.display_order = target.display_order
            asset.is_primary = target.is_primary
        ImageAsset.objects.bulk_update(survivors, ['display_order', 'is_primary'])

    def _apply(self, product_id: int, view: List[EffectivePhoto], change_set: PendingChangeSet) -> CommitResult:
        with transaction.atomic():
            version = self._lock_and_bump(product_id, change_set.base_snapshot_version)
            self._delete(product_id, change_set)
            self._park_survivors(product_id, len(view))
            self._insert_additions(product_id, view, change_set)
            self._rewrite_survivors(product_id, view)
            # Renditions collected since validation roll the whole commit back
            self._check_renditions(change_set)
            photos = tuple(
                CommittedPhoto.from_asset(asset)
                for asset in ImageAsset.objects.filter(product_id=product_id).order_by('display_order')
            )
        return CommitResult(product_id=product_id, version=version, photos=photos)

    # -- entry point ----------------------------------------------------

    def commit(self, session: PhotoEditSession) -> CommitResult:
        """
        Validate and apply ``session``.

        A rejected or rolled back commit leaves the session OPEN with its
        staged operations intact, so the caller can fix and retry. A stale
        base version raises StaleSnapshotError; reopen the session then.
        """
        session.ensure_open()
        session.state = SessionState.VALIDATING
        try:
            view = session.effective_view()
            change_set = session.change_set()
            self.validate(view, change_set)
        except Exception:
            session.state = SessionState.OPEN
            raise

        session.state = SessionState.APPLYING
        try:
            result = self._apply(session.product_id, view, change_set)
        except StaleSnapshotError:
            session.state = SessionState.OPEN
            logger.warning(
                "Stale photo commit for product %s (base version %s)",
                session.product_id, session.base_version,
            )
            raise
        except Exception:
            session.state = SessionState.OPEN
            logger.exception("Photo commit for product %s rolled back", session.product_id)
            raise

        session.state = SessionState.COMMITTED
        logger.info(
            "Committed photos for product %s: version %s, %d photos (+%d / -%d)",
            result.product_id, result.version, len(result.photos),
            len(change_set.additions), len(change_set.deletions),
        )
        return result
