"""
Tests for the upload ingest pipeline.
"""
from __future__ import annotations

import io
from unittest import mock

from PIL import Image
from tenacity import wait_none

from floresya.errors import (
    DecodeError,
    FileTooLarge,
    InvalidFormat,
    NotFoundError,
    StorageWriteError,
)
from productphotos.renditions import RenditionBuilder
from productphotos.services.ingest import PhotoIngestService, compute_content_hash
from productphotos.storage import RenditionStore

from .base import PhotoTestCase, make_image_bytes


class FlakyStore(RenditionStore):
    """Store whose writes fail for chosen sizes (``failures=None``: always)."""

    def __init__(self, fail_sizes=(), failures=None, **kwargs):
        super().__init__(**kwargs)
        self.fail_sizes = set(fail_sizes)
        self.remaining = failures
        self.calls = []

    def write(self, content_hash, size, data):
        self.calls.append(size)
        if size in self.fail_sizes and (self.remaining is None or self.remaining > 0):
            if self.remaining is not None:
                self.remaining -= 1
            raise StorageWriteError(content_hash=content_hash, size=size)
        return super().write(content_hash, size, data)


@mock.patch.object(PhotoIngestService, "retry_wait", wait_none())
class IngestPipelineTests(PhotoTestCase):
    def _stored_files(self, content_hash):
        return [size for size in self.store.sizes if self.store.exists(content_hash, size)]

    def test_ingest_writes_four_bounded_renditions(self):
        data = make_image_bytes(size=(400, 200))
        descriptor = PhotoIngestService().ingest(self.product.pk, data, "image/png", size=len(data))

        self.assertEqual(descriptor.content_hash, compute_content_hash(data))
        self.assertEqual(set(descriptor.renditions), {"thumb", "small", "medium", "large"})
        self.assertEqual(
            (descriptor.renditions["thumb"]["width"], descriptor.renditions["thumb"]["height"]),
            (150, 75),
        )
        self.assertEqual(
            (descriptor.renditions["small"]["width"], descriptor.renditions["small"]["height"]),
            (300, 150),
        )
        # Never upscaled beyond the source
        self.assertEqual(descriptor.renditions["large"]["width"], 400)
        self.assertTrue(self.store.has_complete_set(descriptor.content_hash))
        self.assertTrue(descriptor.renditions["medium"]["url"].endswith("/medium.webp"))

        raw = self.store.read(descriptor.content_hash, "thumb")
        with Image.open(io.BytesIO(raw)) as img:
            self.assertEqual(img.format, "WEBP")

    def test_jpeg_and_webp_uploads_are_accepted(self):
        service = PhotoIngestService()
        jpeg = make_image_bytes(color=(10, 120, 10), fmt="JPEG")
        webp = make_image_bytes(color=(10, 10, 120), fmt="WEBP")

        self.assertEqual(service.ingest(self.product.pk, jpeg, "image/jpeg").content_hash, compute_content_hash(jpeg))
        self.assertEqual(service.ingest(self.product.pk, webp, "image/webp").content_hash, compute_content_hash(webp))
        # Legacy alias
        self.assertTrue(service.ingest(self.product.pk, jpeg, "image/jpg").content_hash)

    def test_identical_bytes_are_transcoded_once(self):
        data = make_image_bytes()
        service = PhotoIngestService()
        with mock.patch.object(RenditionBuilder, "build", autospec=True, side_effect=RenditionBuilder.build) as build:
            first = service.ingest(self.product.pk, data, "image/png")
            second = service.ingest(self.product.pk, data, "image/png")

        self.assertEqual(first.content_hash, second.content_hash)
        self.assertEqual(first.renditions, second.renditions)
        self.assertEqual(build.call_count, 1)
        self.assertEqual(len(self._stored_files(first.content_hash)), 4)

    def test_committed_photo_with_same_hash_is_reused(self):
        data = make_image_bytes(color=(1, 2, 3))
        content_hash = compute_content_hash(data)
        committed = self.add_committed_photo(self.product, content_hash, 1, is_primary=True)

        with mock.patch.object(RenditionBuilder, "build") as build:
            descriptor = PhotoIngestService().ingest(self.product.pk, data, "image/png")

        build.assert_not_called()
        self.assertEqual(descriptor.renditions, committed.renditions)

    def test_rejects_unsupported_mime_before_writing(self):
        data = make_image_bytes(fmt="GIF")
        with self.assertRaises(InvalidFormat) as ctx:
            PhotoIngestService().ingest(self.product.pk, data, "image/gif")

        self.assertEqual(ctx.exception.to_dict()["field"], "file")
        self.assertEqual(list(self.store.stored_hashes()), [])

    def test_rejects_oversized_upload(self):
        data = make_image_bytes()
        with self.settings(PHOTO_MAX_UPLOAD_BYTES=len(data) - 1):
            with self.assertRaises(FileTooLarge):
                PhotoIngestService().ingest(self.product.pk, data, "image/png")
        # Declared length counts too
        with self.assertRaises(FileTooLarge):
            PhotoIngestService().ingest(self.product.pk, data, "image/png", size=6 * 1024 * 1024)
        self.assertEqual(list(self.store.stored_hashes()), [])

    def test_rejects_undecodable_bytes(self):
        service = PhotoIngestService()
        with self.assertRaises(DecodeError):
            service.ingest(self.product.pk, b"definitely not an image", "image/png")
        # Decodes, but is not one of the allowed formats
        with self.assertRaises(DecodeError):
            service.ingest(self.product.pk, make_image_bytes(fmt="GIF"), "image/png")
        self.assertEqual(list(self.store.stored_hashes()), [])

    def test_unknown_product(self):
        with self.assertRaises(NotFoundError):
            PhotoIngestService().ingest(999999, make_image_bytes(), "image/png")

    def test_persistent_storage_failure_removes_partial_renditions(self):
        data = make_image_bytes(color=(90, 90, 0))
        store = FlakyStore(fail_sizes={"medium"})

        with self.assertRaises(StorageWriteError):
            PhotoIngestService(store=store).ingest(self.product.pk, data, "image/png")

        self.assertEqual(store.calls.count("medium"), 3)
        self.assertEqual(self._stored_files(compute_content_hash(data)), [])

    def test_transient_storage_failure_is_retried(self):
        data = make_image_bytes(color=(0, 90, 90))
        store = FlakyStore(fail_sizes={"large"}, failures=2)

        descriptor = PhotoIngestService(store=store).ingest(self.product.pk, data, "image/png")

        self.assertEqual(store.calls.count("large"), 3)
        self.assertTrue(self.store.has_complete_set(descriptor.content_hash))

    def test_attempts_follow_setting(self):
        store = FlakyStore(fail_sizes={"thumb"})
        with self.settings(PHOTO_STORAGE_WRITE_ATTEMPTS=1):
            with self.assertRaises(StorageWriteError):
                PhotoIngestService(store=store).ingest(self.product.pk, make_image_bytes(), "image/png")
        self.assertEqual(store.calls, ["thumb"])

    def test_failed_write_keeps_renditions_shared_with_other_products(self):
        data = make_image_bytes(color=(60, 0, 60))
        other = self.make_product("margaritas")
        descriptor = PhotoIngestService().ingest(other.pk, data, "image/png")
        self.add_committed_photo(other, descriptor.content_hash, 1, is_primary=True)
        # One rendition lost; the rest still back the other product's photo
        self.store.delete_sizes(descriptor.content_hash, ["thumb"])
        store = FlakyStore(fail_sizes={"large"})

        with self.assertRaises(StorageWriteError):
            PhotoIngestService(store=store).ingest(self.product.pk, data, "image/png")

        self.assertEqual(self._stored_files(descriptor.content_hash), ["small", "medium", "large"])

    def test_reused_set_is_stamped(self):
        data = make_image_bytes(color=(0, 60, 60))
        service = PhotoIngestService()
        first = service.ingest(self.product.pk, data, "image/png")
        self.assertFalse(self.store.storage.exists(self.store.stamp_path(first.content_hash)))

        service.ingest(self.make_product("gerberas").pk, data, "image/png")

        self.assertTrue(self.store.storage.exists(self.store.stamp_path(first.content_hash)))
