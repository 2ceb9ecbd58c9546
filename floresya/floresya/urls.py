from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),

    # Carousel + product removal
    path("api/", include("storefront.api_urls")),
    # Product photo sets (ingest / snapshot / commit)
    path("api/", include("productphotos.api_urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
