"""
Read side of the photo set: the last fully committed list plus its version.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from floresya.errors import ConflictError, NotFoundError
from storefront.models import Product

from ..models import ImageAsset

logger = logging.getLogger(__name__)

SNAPSHOT_READ_ATTEMPTS = 3


@dataclass(frozen=True)
class CommittedPhoto:
    id: int
    content_hash: str
    renditions: Dict[str, Any]
    is_primary: bool
    display_order: int

    @classmethod
    def from_asset(cls, asset: ImageAsset) -> 'CommittedPhoto':
        return cls(
            id=asset.pk,
            content_hash=asset.content_hash,
            renditions=asset.renditions,
            is_primary=asset.is_primary,
            display_order=asset.display_order,
        )


@dataclass(frozen=True)
class PhotoSnapshot:
    product_id: int
    version: int
    photos: Tuple[CommittedPhoto, ...] = ()

    @property
    def primary(self):
        return next((photo for photo in self.photos if photo.is_primary), None)


def _current_version(product_id: int) -> int:
    version = Product.objects.filter(pk=product_id).values_list('photo_version', flat=True).first()
    if version is None:
        raise NotFoundError(product_id=product_id)
    return version


def load_snapshot(product_id: int) -> PhotoSnapshot:
    """
    Committed photos of ``product_id`` in display order.

    Never locks. The version is read before and after the photo query; a
    mismatch means a commit landed in between and the read is repeated.
    """
    for attempt in range(1, SNAPSHOT_READ_ATTEMPTS + 1):
        version = _current_version(product_id)
        photos = tuple(
            CommittedPhoto.from_asset(asset)
            for asset in ImageAsset.objects.filter(product_id=product_id).order_by('display_order', 'id')
        )
        if _current_version(product_id) == version:
            return PhotoSnapshot(product_id=product_id, version=version, photos=photos)
        logger.debug("Snapshot of product %s moved during read (attempt %d)", product_id, attempt)

    raise ConflictError(
        "Photo set is being changed; try again.",
        product_id=product_id,
    )
