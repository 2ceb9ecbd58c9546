from django.db import models
from django.db.models import Q


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(unique=True)
    order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['order', 'name']
        indexes = [
            models.Index(fields=['order'], name='idx_category_order'),
        ]

    def __str__(self):
        return self.name


class Product(models.Model):
    title = models.CharField(max_length=200)
    slug = models.SlugField(unique=True)
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name='products',
        null=True,
        blank=True,
    )
    price = models.DecimalField(max_digits=10, decimal_places=2, verbose_name='Precio (USD)')
    summary = models.CharField(max_length=300, blank=True, verbose_name='Resumen')
    is_active = models.BooleanField(default=True, verbose_name='Activo')
    # Homepage carousel slot; NULL means "not in the carousel"
    carousel_position = models.PositiveIntegerField(
        blank=True,
        null=True,
        verbose_name='Posición en el carrusel',
    )
    # Bumped by every committed photo set change (optimistic concurrency token)
    photo_version = models.PositiveIntegerField(default=0, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-id']
        constraints = [
            models.UniqueConstraint(
                fields=['carousel_position'],
                condition=Q(carousel_position__isnull=False),
                name='uniq_product_carousel_position',
            ),
            models.CheckConstraint(
                condition=Q(carousel_position__isnull=True) | Q(carousel_position__gte=1),
                name='chk_product_carousel_position_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['is_active', '-id'], name='idx_product_active_id'),
            models.Index(fields=['carousel_position'], name='idx_product_carousel'),
        ]

    def __str__(self):
        return self.title

    @property
    def primary_photo(self):
        """Committed primary photo, or None for a product without photos."""
        return self.photos.filter(is_primary=True).first()
