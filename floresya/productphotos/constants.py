"""
Photo pipeline limits and their settings lookups.
"""
from __future__ import annotations

from typing import Dict

from django.conf import settings

# Declared MIME type -> Pillow format name
ALLOWED_CONTENT_TYPES: Dict[str, str] = {
    'image/jpeg': 'JPEG',
    'image/jpg': 'JPEG',
    'image/png': 'PNG',
    'image/webp': 'WEBP',
}

DEFAULT_RENDITION_SIZES: Dict[str, int] = {
    'thumb': 150,
    'small': 300,
    'medium': 600,
    'large': 1200,
}

RENDITION_FORMAT = 'WEBP'
RENDITION_EXTENSION = 'webp'
RENDITION_CONTENT_TYPE = 'image/webp'

# Prefix for references to photos staged but not committed yet
PENDING_REF_PREFIX = 'new-'


def max_photos_per_product() -> int:
    return getattr(settings, 'PHOTO_MAX_PER_PRODUCT', 5)


def max_upload_bytes() -> int:
    return getattr(settings, 'PHOTO_MAX_UPLOAD_BYTES', 5 * 1024 * 1024)


def rendition_sizes() -> Dict[str, int]:
    return dict(getattr(settings, 'PHOTO_RENDITION_SIZES', DEFAULT_RENDITION_SIZES))


def rendition_quality() -> int:
    return getattr(settings, 'PHOTO_RENDITION_QUALITY', 85)


def storage_prefix() -> str:
    return getattr(settings, 'PHOTO_STORAGE_PREFIX', 'product_photos')


def storage_write_attempts() -> int:
    return max(1, getattr(settings, 'PHOTO_STORAGE_WRITE_ATTEMPTS', 3))


def orphan_ttl_seconds() -> int:
    return getattr(settings, 'PHOTO_ORPHAN_TTL_SECONDS', 24 * 60 * 60)


def cleanup_grace_seconds() -> int:
    return getattr(settings, 'PHOTO_CLEANUP_GRACE_SECONDS', 300)
