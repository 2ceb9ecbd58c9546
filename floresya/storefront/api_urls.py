"""
Storefront API routes (carousel, product removal).
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .viewsets import CarouselViewSet, ProductViewSet

router = SimpleRouter()
router.register(r'carousel', CarouselViewSet, basename='api-carousel')
router.register(r'products', ProductViewSet, basename='api-product')

urlpatterns = [
    path('', include(router.urls)),
]

# GET    /api/carousel/            - Carousel listing
# POST   /api/carousel/assign/     - Assign / clear a carousel slot
# DELETE /api/products/{id}/       - Remove or deactivate a product
