"""
Product photo API routes.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .viewsets import ProductPhotoViewSet

router = SimpleRouter()
router.register(r'products/(?P<product_id>\d+)/photos', ProductPhotoViewSet, basename='api-product-photos')

urlpatterns = [
    path('', include(router.urls)),
]

# GET    /api/products/{id}/photos/          - Committed photo set
# POST   /api/products/{id}/photos/ingest/   - Upload one image
# POST   /api/products/{id}/photos/commit/   - Commit staged edits
