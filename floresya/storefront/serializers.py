"""
Django REST Framework serializers for the storefront API.
"""

from rest_framework import serializers

from .models import Product


class CarouselAssignSerializer(serializers.Serializer):
    """
    Fields:
        - product_id: product to place
        - position: positive slot number, or null to remove from the carousel
    """
    product_id = serializers.IntegerField(min_value=1)
    position = serializers.IntegerField(min_value=1, allow_null=True)


class CarouselSlotSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(source='pk', read_only=True)
    position = serializers.IntegerField(source='carousel_position', read_only=True, allow_null=True)

    class Meta:
        model = Product
        fields = ['product_id', 'title', 'slug', 'position']


class CarouselEntrySerializer(serializers.Serializer):
    product_id = serializers.IntegerField(read_only=True)
    title = serializers.CharField(read_only=True)
    slug = serializers.SlugField(read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    position = serializers.IntegerField(read_only=True)
    image = serializers.DictField(child=serializers.CharField(), read_only=True, allow_null=True)


class RemovalResultSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(source='pk', read_only=True)
    deletion_type = serializers.CharField(read_only=True)
    references = serializers.ListField(child=serializers.CharField(), read_only=True)
