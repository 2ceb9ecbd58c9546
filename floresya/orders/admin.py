from django.contrib import admin

from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    raw_id_fields = ('product',)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'customer_name', 'status', 'total_sum', 'created')
    list_filter = ('status',)
    search_fields = ('customer_name', 'customer_email')
    inlines = [OrderItemInline]
