"""
Product photo API.

    GET  /api/products/{product_id}/photos/          committed set + version
    POST /api/products/{product_id}/photos/ingest/   upload one image
    POST /api/products/{product_id}/photos/commit/   apply a batch of edits

Domain errors are rendered by floresya.api.photo_set_exception_handler.
"""
import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from floresya.errors import ValidationError

from .serializers import (
    PhotoCommitSerializer,
    PhotoDescriptorSerializer,
    PhotoSetSerializer,
    PhotoUploadSerializer,
)
from .services import PhotoCommitCoordinator, PhotoIngestService, load_snapshot
from .services.batch import session_from_request

logger = logging.getLogger(__name__)


def _validated(serializer):
    if not serializer.is_valid():
        field = next(iter(serializer.errors), None)
        raise ValidationError(field=field, errors=serializer.errors)
    return serializer.validated_data


class ProductPhotoViewSet(viewsets.ViewSet):
    """
    Photo set of a single product.

    The client keeps its staged edits locally (preview via the ingest
    descriptors) and sends them to ``commit`` in one request together with
    the version it started from.
    """

    def list(self, request, product_id=None):
        """
        Returns:
            - 200: {product_id, version, photos}
            - 404: unknown product
        """
        snapshot = load_snapshot(int(product_id))
        return Response(PhotoSetSerializer(snapshot).data)

    @action(detail=False, methods=['post'], url_path='ingest')
    def ingest(self, request, product_id=None):
        """
        Multipart upload (field ``file``). JPEG, PNG or WebP up to 5 MiB.

        Returns:
            - 201: {content_hash, renditions}
            - 400: invalid_format / file_too_large / decode_error
            - 503: storage_write_error
        """
        upload = _validated(PhotoUploadSerializer(data=request.data))['file']
        service = PhotoIngestService()
        service.validate_content_type(upload.content_type)
        # Reject oversized uploads before reading them into memory
        service.validate_size(b'', upload.size)
        descriptor = service.ingest(
            int(product_id),
            upload.read(),
            upload.content_type,
            size=upload.size,
        )
        return Response(PhotoDescriptorSerializer(descriptor).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='commit')
    def commit(self, request, product_id=None):
        """
        Body::

            {"base_version": 3,
             "additions": ["<sha256>", ...],
             "deletions": [12, ...],
             "order": [14, "<sha256>", ...],
             "primary": 14}

        Returns:
            - 200: {product_id, version, photos}
            - 400: validation errors (limit, unknown reference, ...)
            - 409: stale_snapshot
        """
        payload = _validated(PhotoCommitSerializer(data=request.data))
        session = session_from_request(
            int(product_id),
            payload['base_version'],
            additions=payload['additions'],
            deletions=payload['deletions'],
            order=payload['order'],
            primary=payload['primary'],
        )
        result = PhotoCommitCoordinator().commit(session)
        return Response(PhotoSetSerializer(result).data)
