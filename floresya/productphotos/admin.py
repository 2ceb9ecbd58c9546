from django.contrib import admin

from .models import ImageAsset


@admin.register(ImageAsset)
class ImageAssetAdmin(admin.ModelAdmin):
    # Rows are written only by the commit coordinator
    list_display = ('product', 'display_order', 'is_primary', 'content_hash', 'created_at')
    list_filter = ('is_primary',)
    search_fields = ('product__title', 'content_hash')
    readonly_fields = ('product', 'content_hash', 'renditions', 'is_primary', 'display_order', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
