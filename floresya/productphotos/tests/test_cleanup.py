"""
Tests for the orphan rendition sweep.
"""
from __future__ import annotations

import os
from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.utils import timezone

from productphotos.services import PhotoCommitCoordinator, PhotoEditSession, PhotoIngestService
from productphotos.services.cleanup import cleanup_unreferenced, sweep_orphan_renditions
from productphotos.tasks import sweep_orphan_renditions_task

from .base import PhotoTestCase, make_image_bytes


class OrphanSweepTests(PhotoTestCase):
    def setUp(self):
        super().setUp()
        service = PhotoIngestService()
        self.committed = service.ingest(self.product.pk, make_image_bytes(color=(1, 1, 1)), "image/png")
        self.orphan_bytes = make_image_bytes(color=(2, 2, 2))
        self.orphan = service.ingest(self.product.pk, self.orphan_bytes, "image/png")

        session = PhotoEditSession.open(self.product.pk)
        session.stage_add(self.committed)
        PhotoCommitCoordinator().commit(session)

    def later(self, **delta):
        return timezone.now() + timedelta(**delta)

    def backdate(self, content_hash, **delta):
        """Pretend every file of the set was last written ``delta`` ago."""
        stamp = (timezone.now() - timedelta(**delta)).timestamp()
        directory = self.store.storage.path(self.store.hash_dir(content_hash))
        for name in os.listdir(directory):
            os.utime(os.path.join(directory, name), (stamp, stamp))

    def test_recent_orphans_are_kept(self):
        report = sweep_orphan_renditions(now=self.later(hours=1))

        self.assertEqual(report.removed_hashes, 0)
        self.assertEqual(report.kept_recent, 1)
        self.assertTrue(self.store.has_complete_set(self.orphan.content_hash))

    def test_expired_orphans_are_removed_and_referenced_kept(self):
        report = sweep_orphan_renditions(now=self.later(days=2))

        self.assertEqual(report.scanned, 2)
        self.assertEqual(report.removed_hashes, 1)
        self.assertEqual(report.removed_files, 4)
        self.assertEqual(report.kept_referenced, 1)
        self.assertFalse(self.store.exists(self.orphan.content_hash, "thumb"))
        self.assertTrue(self.store.has_complete_set(self.committed.content_hash))

    def test_ttl_override(self):
        report = sweep_orphan_renditions(ttl_seconds=0, now=self.later(seconds=1))
        self.assertEqual(report.removed_hashes, 1)

    def test_limit_caps_removals(self):
        PhotoIngestService().ingest(self.product.pk, make_image_bytes(color=(3, 3, 3)), "image/png")
        report = sweep_orphan_renditions(now=self.later(days=2), limit=1)
        self.assertEqual(report.removed_hashes, 1)
        self.assertEqual(len(list(self.store.stored_hashes())), 2)

    def test_cleanup_unreferenced_respects_references(self):
        self.assertEqual(cleanup_unreferenced(self.committed.content_hash), 0)
        self.assertEqual(cleanup_unreferenced(self.orphan.content_hash), 4)

    def test_sweep_task_runs_with_zero_ttl(self):
        result = sweep_orphan_renditions_task.delay(ttl_seconds=0).get()
        self.assertEqual(result["removed_hashes"], 1)

    def test_management_command(self):
        out = StringIO()
        call_command("sweep_photo_renditions", "--ttl", "0", stdout=out)
        self.assertIn("removed 1", out.getvalue())
        self.assertFalse(self.store.exists(self.orphan.content_hash, "large"))

    def test_emptied_directories_are_not_rescanned(self):
        first = sweep_orphan_renditions(now=self.later(days=2))
        self.assertEqual(first.removed_hashes, 1)
        self.assertFalse(os.path.exists(self.store.storage.path(self.store.hash_dir(self.orphan.content_hash))))
        self.assertNotIn(self.orphan.content_hash, list(self.store.stored_hashes()))

        fresh = PhotoIngestService().ingest(self.product.pk, make_image_bytes(color=(4, 4, 4)), "image/png")
        report = sweep_orphan_renditions(now=self.later(days=2), limit=1)

        self.assertEqual((report.removed_hashes, report.removed_files), (1, 4))
        self.assertFalse(self.store.exists(fresh.content_hash, "thumb"))

    def test_reingested_set_is_kept_by_the_sweep(self):
        self.backdate(self.orphan.content_hash, days=2)
        other = self.make_product("claveles")

        descriptor = PhotoIngestService().ingest(other.pk, self.orphan_bytes, "image/png")
        report = sweep_orphan_renditions()

        self.assertEqual(report.removed_hashes, 0)
        self.assertEqual(report.kept_recent, 1)
        session = PhotoEditSession.open(other.pk)
        session.stage_add(descriptor)
        result = PhotoCommitCoordinator().commit(session)
        self.assertEqual(result.photos[0].content_hash, self.orphan.content_hash)
        self.assertPhotoSetInvariants(other)

    def test_untouched_backdated_set_is_swept(self):
        self.backdate(self.orphan.content_hash, days=2)
        report = sweep_orphan_renditions()
        self.assertEqual(report.removed_hashes, 1)

    def test_cleanup_skips_sets_reused_within_grace(self):
        self.backdate(self.orphan.content_hash, hours=1)
        with self.settings(PHOTO_CLEANUP_GRACE_SECONDS=300):
            PhotoIngestService().ingest(self.make_product("lirios").pk, self.orphan_bytes, "image/png")
            self.assertEqual(cleanup_unreferenced(self.orphan.content_hash), 0)
        self.assertTrue(self.store.has_complete_set(self.orphan.content_hash))

    def test_cleanup_removes_sets_idle_past_grace(self):
        self.backdate(self.orphan.content_hash, hours=1)
        with self.settings(PHOTO_CLEANUP_GRACE_SECONDS=300):
            self.assertEqual(cleanup_unreferenced(self.orphan.content_hash), 4)
