"""
Upload ingest: validate -> hash -> dedup -> transcode -> store.

Produces a PhotoDescriptor that a PhotoEditSession can stage. Nothing here
touches committed metadata.
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from floresya.errors import (
    FileTooLarge,
    InvalidFormat,
    NotFoundError,
    StorageWriteError,
)
from storefront.models import Product

from .. import constants
from ..models import ImageAsset
from ..renditions import Rendition, RenditionBuilder, open_upload
from ..storage import RenditionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhotoDescriptor:
    content_hash: str
    renditions: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {'content_hash': self.content_hash, 'renditions': self.renditions}


def compute_content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def normalise_content_type(content_type: Optional[str]) -> str:
    # "image/JPEG; charset=binary" -> "image/jpeg"
    return (content_type or '').split(';', 1)[0].strip().lower()


class PhotoIngestService:
    # Backoff between storage write attempts; tests swap in tenacity.wait_none()
    retry_wait = wait_exponential(multiplier=0.2, min=0.2, max=2)

    def __init__(self, store: Optional[RenditionStore] = None, builder: Optional[RenditionBuilder] = None):
        self.store = store or RenditionStore()
        self.builder = builder or RenditionBuilder()

    # -- validation -----------------------------------------------------

    @staticmethod
    def validate_content_type(content_type: Optional[str]) -> str:
        normalised = normalise_content_type(content_type)
        if normalised not in constants.ALLOWED_CONTENT_TYPES:
            raise InvalidFormat(field='file', content_type=content_type)
        return normalised

    @staticmethod
    def validate_size(data: bytes, size: Optional[int]) -> None:
        limit = constants.max_upload_bytes()
        actual = len(data)
        if actual > limit or (size is not None and size > limit):
            raise FileTooLarge(field='file', size=max(actual, size or 0), limit=limit)

    # -- pipeline -------------------------------------------------------

    def ingest(
        self,
        product_id: int,
        data: bytes,
        content_type: Optional[str],
        size: Optional[int] = None,
    ) -> PhotoDescriptor:
        """
        Validate and store one upload for ``product_id``.

        Raises InvalidFormat, FileTooLarge or DecodeError before any storage
        write, NotFoundError for an unknown product, StorageWriteError when
        the store keeps failing (partial renditions are removed first).
        """
        self.validate_content_type(content_type)
        self.validate_size(data, size)
        if not Product.objects.filter(pk=product_id).exists():
            raise NotFoundError(product_id=product_id)

        img = open_upload(data)
        content_hash = compute_content_hash(data)

        with img:
            existing = (
                ImageAsset.objects
                .filter(product_id=product_id, content_hash=content_hash)
                .values_list('renditions', flat=True)
                .first()
            )
            if existing:
                self.store.touch(content_hash)
                logger.info("Ingest for product %s reused committed photo %s", product_id, content_hash)
                return PhotoDescriptor(content_hash, existing)

            if self.store.has_complete_set(content_hash):
                # Restart the sweep and cleanup clocks for the reused set
                self.store.touch(content_hash)
                logger.info("Ingest for product %s reused stored renditions %s", product_id, content_hash)
                return PhotoDescriptor(content_hash, self.store.describe(content_hash))

            renditions = self.builder.build(img)

        descriptor = PhotoDescriptor(content_hash, self._store_renditions(content_hash, renditions))
        logger.info(
            "Ingest for product %s transcoded %s into %d renditions",
            product_id, content_hash, len(renditions),
        )
        return descriptor

    def _store_renditions(self, content_hash: str, renditions: Dict[str, Rendition]) -> Dict[str, Dict[str, Any]]:
        stored: Dict[str, Dict[str, Any]] = {}
        # Only files created here are rolled back; the rest may belong to
        # photos of other products sharing the hash.
        created = []
        try:
            for size, rendition in renditions.items():
                if self._write_with_retry(content_hash, rendition):
                    created.append(size)
                stored[size] = {
                    'url': self.store.url(content_hash, size),
                    'width': rendition.width,
                    'height': rendition.height,
                }
        except StorageWriteError:
            removed = self.store.delete_sizes(content_hash, created)
            logger.warning(
                "Storage write failed for %s; removed %d partial renditions",
                content_hash, removed,
            )
            raise
        return stored

    def _write_with_retry(self, content_hash: str, rendition: Rendition) -> bool:
        @retry(
            stop=stop_after_attempt(constants.storage_write_attempts()),
            wait=self.retry_wait,
            retry=retry_if_exception_type(StorageWriteError),
            reraise=True,
        )
        def _write():
            return self.store.write(content_hash, rendition.size, rendition.data)

        return _write()
