"""
Django REST Framework ViewSets for the storefront API.

    GET    /api/carousel/             carousel listing
    POST   /api/carousel/assign/      assign or clear a slot
    DELETE /api/products/{id}/        remove (or deactivate) a product
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from floresya.errors import ValidationError

from .serializers import (
    CarouselAssignSerializer,
    CarouselEntrySerializer,
    CarouselSlotSerializer,
    RemovalResultSerializer,
)
from .services import CarouselSlotAllocator, remove_product


class CarouselViewSet(viewsets.ViewSet):
    """
    Homepage carousel.

    Assigning a position held by another product fails with 409
    ``slot_taken`` and the holder's id; clear that product first.
    """

    def list(self, request):
        entries = CarouselSlotAllocator().listing()
        serializer = CarouselEntrySerializer(entries, many=True)
        return Response({
            'results': serializer.data,
            'count': len(serializer.data),
        })

    @action(detail=False, methods=['post'], url_path='assign')
    def assign(self, request):
        """
        Body: {"product_id": 7, "position": 3}  (position may be null)

        Returns:
            - 200: the product's slot
            - 400: invalid position
            - 404: unknown product
            - 409: slot_taken {holder_id, position}
        """
        serializer = CarouselAssignSerializer(data=request.data)
        if not serializer.is_valid():
            field = next(iter(serializer.errors), None)
            raise ValidationError(field=field, errors=serializer.errors)
        data = serializer.validated_data
        product = CarouselSlotAllocator().assign(data['product_id'], data['position'])
        return Response(CarouselSlotSerializer(product).data)


class ProductViewSet(viewsets.ViewSet):

    def destroy(self, request, pk=None):
        """
        Ordered products are only deactivated; the rest are deleted along
        with their photos.
        """
        result = remove_product(int(pk))
        return Response(RemovalResultSerializer(result).data)
