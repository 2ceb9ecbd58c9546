from django.apps import AppConfig


class ProductPhotosConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'productphotos'
    verbose_name = 'Fotos de productos'

    def ready(self):
        # Rendition cleanup on photo deletion
        from . import signals  # noqa: F401
