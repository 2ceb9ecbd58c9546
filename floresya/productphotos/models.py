from django.db import models
from django.db.models import Q

from storefront.models import Product


class ImageAsset(models.Model):
    """
    Committed photo of a product.

    Bytes live in the rendition store under ``content_hash``; this row only
    points at them. Rows are written exclusively by the commit coordinator.
    """
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='photos')
    content_hash = models.CharField(max_length=64, db_index=True)
    # {"thumb": {"url": ..., "width": ..., "height": ...}, "small": ..., ...}
    renditions = models.JSONField(default=dict)
    is_primary = models.BooleanField(default=False)
    display_order = models.PositiveIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['display_order', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'display_order'],
                name='uniq_photo_product_display_order',
            ),
            models.UniqueConstraint(
                fields=['product'],
                condition=Q(is_primary=True),
                name='uniq_photo_product_primary',
            ),
            models.CheckConstraint(
                condition=Q(display_order__gte=1),
                name='chk_photo_display_order_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['product', 'content_hash'], name='idx_photo_product_hash'),
        ]

    def __str__(self):
        return f'Photo #{self.display_order} for {self.product_id}'
