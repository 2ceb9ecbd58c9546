from django.db import models

from storefront.models import Product


class Order(models.Model):
    STATUS_CHOICES = [
        ('new', 'Nuevo'),
        ('confirmed', 'Confirmado'),
        ('shipped', 'Enviado'),
        ('delivered', 'Entregado'),
        ('cancelled', 'Cancelado'),
    ]

    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='new')
    total_sum = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created = models.DateTimeField(auto_now_add=True)
    updated = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created']
        indexes = [
            models.Index(fields=['-created'], name='idx_order_created_desc'),
            models.Index(fields=['status', '-created'], name='idx_order_status_created'),
        ]

    def __str__(self):
        return f'Order #{self.pk} by {self.customer_name} ({self.get_status_display()})'


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    # PROTECT: ordered products are deactivated, never removed
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='order_items')
    title = models.CharField(max_length=200)
    qty = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    def __str__(self):
        return f'{self.title} × {self.qty}'
