"""
Tests for the product photo HTTP endpoints.
"""
from __future__ import annotations

from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework.test import APIClient

from productphotos.models import ImageAsset

from .base import PhotoTestCase, make_image_bytes


class PhotoApiTests(PhotoTestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.list_url = reverse("api-product-photos-list", kwargs={"product_id": self.product.pk})
        self.ingest_url = reverse("api-product-photos-ingest", kwargs={"product_id": self.product.pk})
        self.commit_url = reverse("api-product-photos-commit", kwargs={"product_id": self.product.pk})

    def upload(self, color=(200, 0, 0), content_type="image/png", data=None):
        data = data if data is not None else make_image_bytes(color=color)
        upload = SimpleUploadedFile("flor.png", data, content_type=content_type)
        return self.client.post(self.ingest_url, {"file": upload}, format="multipart")

    def test_ingest_returns_descriptor(self):
        response = self.upload()

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(len(body["content_hash"]), 64)
        self.assertEqual(set(body["renditions"]), {"thumb", "small", "medium", "large"})
        self.assertIn("url", body["renditions"]["thumb"])

    def test_ingest_rejects_bad_uploads(self):
        response = self.upload(content_type="image/gif")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "invalid_format")

        response = self.upload(data=b"garbage bytes")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "decode_error")

        response = self.client.post(self.ingest_url, {}, format="multipart")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "validation_error")
        self.assertEqual(response.json()["field"], "file")

    def test_snapshot_of_unknown_product(self):
        url = reverse("api-product-photos-list", kwargs={"product_id": 999999})
        response = self.client.get(url)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "not_found")

    def test_commit_round_trip(self):
        first = self.upload(color=(1, 100, 1)).json()["content_hash"]
        second = self.upload(color=(1, 1, 100)).json()["content_hash"]

        response = self.client.post(self.commit_url, {
            "base_version": 0,
            "additions": [first, second],
            "order": [second, first],
            "primary": first,
        }, format="json")

        self.assertEqual(response.status_code, 200, response.content)
        body = response.json()
        self.assertEqual(body["version"], 1)
        self.assertEqual(
            [(photo["content_hash"], photo["display_order"], photo["is_primary"]) for photo in body["photos"]],
            [(second, 1, False), (first, 2, True)],
        )

        snapshot = self.client.get(self.list_url).json()
        self.assertEqual(snapshot["version"], 1)
        self.assertEqual(snapshot["photos"], body["photos"])

        kept = body["photos"][1]["id"]
        dropped = body["photos"][0]["id"]
        response = self.client.post(self.commit_url, {
            "base_version": 1,
            "deletions": [dropped],
        }, format="json")
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual([photo["id"] for photo in response.json()["photos"]], [kept])

    def test_commit_with_stale_version_conflicts(self):
        content_hash = self.upload().json()["content_hash"]
        self.client.post(self.commit_url, {"base_version": 0, "additions": [content_hash]}, format="json")

        response = self.client.post(self.commit_url, {
            "base_version": 0,
            "additions": [content_hash],
        }, format="json")

        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertEqual(body["error"], "stale_snapshot")
        self.assertEqual(body["current_version"], 1)
        self.assertEqual(ImageAsset.objects.filter(product=self.product).count(), 1)

    def test_commit_rejects_unknown_references_and_limits(self):
        response = self.client.post(self.commit_url, {
            "base_version": 0,
            "deletions": [123456],
        }, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "unknown_image_reference")

        content_hash = self.upload().json()["content_hash"]
        response = self.client.post(self.commit_url, {
            "base_version": 0,
            "additions": [content_hash] * 6,
        }, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "image_limit_exceeded")

        response = self.client.post(self.commit_url, {
            "base_version": 0,
            "additions": ["f" * 64],
        }, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field"], "additions")
        self.assertFalse(ImageAsset.objects.exists())

    def test_commit_same_hash_twice_maps_in_order(self):
        content_hash = self.upload().json()["content_hash"]

        response = self.client.post(self.commit_url, {
            "base_version": 0,
            "additions": [content_hash, content_hash],
            "order": [content_hash, content_hash],
            "primary": content_hash,
        }, format="json")

        self.assertEqual(response.status_code, 200, response.content)
        photos = response.json()["photos"]
        self.assertEqual([photo["display_order"] for photo in photos], [1, 2])
        self.assertEqual([photo["is_primary"] for photo in photos], [True, False])
        self.assertPhotoSetInvariants(self.product)
