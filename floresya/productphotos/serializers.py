"""
Serializers for the product photo API.

Request serializers only check shape; every rule about the photo set itself
lives in the services.
"""
from rest_framework import serializers


class PhotoRefField(serializers.Field):
    """
    A photo reference: an ImageAsset id (int) or the content hash of an
    addition in the same request.
    """
    default_error_messages = {
        'invalid': 'Expected a photo id or a content hash.',
    }

    def to_internal_value(self, data):
        if isinstance(data, bool):
            self.fail('invalid')
        if isinstance(data, int):
            if data < 1:
                self.fail('invalid')
            return data
        if isinstance(data, str):
            value = data.strip()
            if value.isdigit():
                return int(value)
            if value:
                return value.lower()
        self.fail('invalid')

    def to_representation(self, value):
        return value


class PhotoUploadSerializer(serializers.Serializer):
    file = serializers.FileField(allow_empty_file=False)


class PhotoCommitSerializer(serializers.Serializer):
    """
    Fields:
        - base_version: version the client's view was built from
        - additions: content hashes returned by ingest
        - deletions: ids of committed photos to remove
        - order: final order (ids and/or addition hashes)
        - primary: id or addition hash, or null
    """
    base_version = serializers.IntegerField(min_value=0)
    additions = serializers.ListField(
        child=serializers.RegexField(r'^[0-9a-fA-F]{64}$'),
        required=False,
        default=list,
    )
    deletions = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )
    order = serializers.ListField(child=PhotoRefField(), required=False, default=list)
    primary = PhotoRefField(required=False, allow_null=True, default=None)

    def validate_additions(self, value):
        return [content_hash.lower() for content_hash in value]


class PhotoSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    content_hash = serializers.CharField(read_only=True)
    renditions = serializers.DictField(read_only=True)
    is_primary = serializers.BooleanField(read_only=True)
    display_order = serializers.IntegerField(read_only=True)


class PhotoSetSerializer(serializers.Serializer):
    """Committed photo set: snapshot reads and commit results share it."""
    product_id = serializers.IntegerField(read_only=True)
    version = serializers.IntegerField(read_only=True)
    photos = PhotoSerializer(many=True, read_only=True)


class PhotoDescriptorSerializer(serializers.Serializer):
    content_hash = serializers.CharField(read_only=True)
    renditions = serializers.DictField(read_only=True)
