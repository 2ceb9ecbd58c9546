"""
Rendition store: durable bytes keyed by ``(content_hash, size_tag)``.

Thin layer over a Django storage backend (``default_storage`` unless one is
injected). Layout::

    <prefix>/<hash[:2]>/<hash>/<size>.webp

Writes are idempotent: an existing key is never rewritten because the bytes
for a given hash are always identical. Each hash directory may also hold a
``last_used`` stamp, refreshed whenever an existing set is handed out again,
so garbage collection can tell a reused set from an abandoned one.
"""
from __future__ import annotations

import io
import logging
import os
import posixpath
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional

from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage
from django.utils import timezone
from PIL import Image

from floresya.errors import StorageError, StorageWriteError

from . import constants

logger = logging.getLogger(__name__)

STAMP_NAME = 'last_used'


class RenditionStore:
    def __init__(
        self,
        storage: Optional[Storage] = None,
        prefix: Optional[str] = None,
        sizes: Optional[Iterable[str]] = None,
    ):
        self.storage = storage or default_storage
        self.prefix = (prefix or constants.storage_prefix()).strip('/')
        self.sizes = list(sizes or constants.rendition_sizes().keys())

    # -- keys -----------------------------------------------------------

    def hash_dir(self, content_hash: str) -> str:
        return posixpath.join(self.prefix, content_hash[:2], content_hash)

    def path_for(self, content_hash: str, size: str) -> str:
        return posixpath.join(
            self.hash_dir(content_hash),
            f'{size}.{constants.RENDITION_EXTENSION}',
        )

    # -- reads ----------------------------------------------------------

    def exists(self, content_hash: str, size: str) -> bool:
        try:
            return self.storage.exists(self.path_for(content_hash, size))
        except OSError as exc:
            raise StorageError(content_hash=content_hash, size=size, reason=str(exc)) from exc

    def has_complete_set(self, content_hash: str) -> bool:
        return all(self.exists(content_hash, size) for size in self.sizes)

    def missing_sizes(self, content_hash: str) -> List[str]:
        return [size for size in self.sizes if not self.exists(content_hash, size)]

    def url(self, content_hash: str, size: str) -> str:
        return self.storage.url(self.path_for(content_hash, size))

    def read(self, content_hash: str, size: str) -> bytes:
        try:
            with self.storage.open(self.path_for(content_hash, size), 'rb') as fh:
                return fh.read()
        except OSError as exc:
            raise StorageError(content_hash=content_hash, size=size, reason=str(exc)) from exc

    def describe(self, content_hash: str) -> Dict[str, Dict[str, object]]:
        """
        Rendition map for an already stored hash, in the committed-row shape.
        """
        renditions: Dict[str, Dict[str, object]] = {}
        for size in self.sizes:
            with Image.open(io.BytesIO(self.read(content_hash, size))) as img:
                width, height = img.size
            renditions[size] = {
                'url': self.url(content_hash, size),
                'width': width,
                'height': height,
            }
        return renditions

    def stamp_path(self, content_hash: str) -> str:
        return posixpath.join(self.hash_dir(content_hash), STAMP_NAME)

    def stored_hashes(self) -> Iterator[str]:
        """Yield every hash whose directory still holds files."""
        try:
            shards, _ = self.storage.listdir(self.prefix)
        except FileNotFoundError:
            return
        for shard in sorted(shards):
            hashes, _ = self.storage.listdir(posixpath.join(self.prefix, shard))
            for content_hash in sorted(hashes):
                _, files = self.storage.listdir(self.hash_dir(content_hash))
                if files:
                    yield content_hash

    def last_modified(self, content_hash: str) -> Optional[datetime]:
        """Latest of the rendition write times and the ``last_used`` stamp."""
        paths = [self.path_for(content_hash, size) for size in self.sizes]
        paths.append(self.stamp_path(content_hash))
        stamps = []
        for path in paths:
            if self.storage.exists(path):
                stamps.append(self.storage.get_modified_time(path))
        return max(stamps) if stamps else None

    # -- writes ---------------------------------------------------------

    def write(self, content_hash: str, size: str, data: bytes) -> bool:
        """
        Store one rendition. Returns True when this call created the file,
        False when it was already there.

        Raises StorageWriteError when the backend fails.
        """
        name = self.path_for(content_hash, size)
        try:
            if self.storage.exists(name):
                return False
            saved_name = self.storage.save(name, ContentFile(data))
            if saved_name != name:
                # A concurrent ingest of the same bytes won the race; keep theirs.
                self.storage.delete(saved_name)
                return False
        except OSError as exc:
            raise StorageWriteError(content_hash=content_hash, size=size, reason=str(exc)) from exc
        return True

    def touch(self, content_hash: str) -> None:
        """Mark the set of ``content_hash`` as just used."""
        name = self.stamp_path(content_hash)
        try:
            if self.storage.exists(name):
                self.storage.delete(name)
            saved_name = self.storage.save(name, ContentFile(timezone.now().isoformat().encode()))
            if saved_name != name:
                self.storage.delete(saved_name)
        except OSError as exc:
            raise StorageWriteError(content_hash=content_hash, size=STAMP_NAME, reason=str(exc)) from exc

    def delete_sizes(self, content_hash: str, sizes: Iterable[str]) -> int:
        """
        Remove the given renditions of ``content_hash``, and the directory
        once nothing is left in it. Returns files removed.
        """
        removed = 0
        for size in sizes:
            name = self.path_for(content_hash, size)
            try:
                if self.storage.exists(name):
                    self.storage.delete(name)
                    removed += 1
            except OSError as exc:
                logger.warning("Could not delete rendition %s: %s", name, exc)
        self._prune_dir(content_hash)
        return removed

    def delete_set(self, content_hash: str) -> int:
        """
        Remove every rendition of ``content_hash`` together with its stamp
        and, on filesystem backends, the emptied directory. Returns the
        number of renditions removed.
        """
        stamp = self.stamp_path(content_hash)
        try:
            if self.storage.exists(stamp):
                self.storage.delete(stamp)
        except OSError as exc:
            logger.warning("Could not delete stamp %s: %s", stamp, exc)
        return self.delete_sizes(content_hash, self.sizes)

    def _prune_dir(self, content_hash: str) -> None:
        directory = self.hash_dir(content_hash)
        try:
            dirs, files = self.storage.listdir(directory)
        except FileNotFoundError:
            return
        if dirs or files:
            return
        try:
            path = self.storage.path(directory)
        except NotImplementedError:
            # Key-value backends have no directories to remove
            return
        try:
            os.rmdir(path)
        except OSError as exc:
            # A concurrent ingest may have written into it meanwhile
            logger.debug("Kept rendition directory %s: %s", directory, exc)
