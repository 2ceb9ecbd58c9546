from django.contrib import admin, messages

from floresya.errors import PhotoSetError

from .models import Category, Product
from .services import CarouselSlotAllocator, product_removal


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'slug', 'order', 'is_active')
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('title', 'category', 'price', 'is_active', 'carousel_position', 'photo_version')
    list_filter = ('category', 'is_active')
    search_fields = ('title', 'slug')
    prepopulated_fields = {'slug': ('title',)}
    readonly_fields = ('carousel_position', 'photo_version')
    actions = ['remove_from_carousel']

    @admin.action(description='Quitar del carrusel')
    def remove_from_carousel(self, request, queryset):
        allocator = CarouselSlotAllocator()
        for product in queryset.exclude(carousel_position__isnull=True):
            allocator.clear(product.pk)
        self.message_user(request, 'Productos retirados del carrusel.', messages.SUCCESS)

    def delete_model(self, request, obj):
        result = product_removal().remove(obj.pk)
        if result.is_soft:
            self.message_user(
                request,
                f'"{obj}" tiene pedidos; se desactivó en lugar de borrarse.',
                messages.WARNING,
            )

    def delete_queryset(self, request, queryset):
        removal = product_removal()
        for pk in queryset.values_list('pk', flat=True):
            try:
                removal.remove(pk)
            except PhotoSetError as exc:
                self.message_user(request, f'Producto {pk}: {exc}', messages.ERROR)
