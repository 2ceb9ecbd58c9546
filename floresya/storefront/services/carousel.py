"""
Homepage carousel slots.

A product holds at most one position and a position belongs to at most one
product. Conflicts are reported, never resolved by shuffling other products.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Prefetch

from floresya.errors import NotFoundError, SlotTaken, ValidationError
from productphotos.models import ImageAsset

from ..models import Product

logger = logging.getLogger(__name__)

# Renditions shown by the storefront carousel
CAROUSEL_RENDITIONS = ('thumb', 'medium')


@dataclass(frozen=True)
class CarouselEntry:
    product_id: int
    title: str
    slug: str
    price: Decimal
    position: int
    image: Optional[Dict[str, str]] = None


def validate_position(position) -> Optional[int]:
    if position is None:
        return None
    if isinstance(position, bool) or not isinstance(position, int) or position < 1:
        raise ValidationError(
            "Carousel position must be a positive integer or null.",
            field='position',
            position=position,
        )
    return position


class CarouselSlotAllocator:

    @staticmethod
    def holder_of(position: int, exclude_id: Optional[int] = None) -> Optional[int]:
        qs = Product.objects.filter(carousel_position=position)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs.values_list('pk', flat=True).first()

    def assign(self, product_id: int, position: Optional[int]) -> Product:
        """
        Put ``product_id`` at ``position``; ``None`` takes it out of the
        carousel.

        Raises SlotTaken(holder_id) when another product holds the position,
        ValidationError when an inactive product asks for a position,
        NotFoundError for an unknown product.
        """
        position = validate_position(position)
        try:
            with transaction.atomic():
                product = Product.objects.select_for_update().filter(pk=product_id).first()
                if product is None:
                    raise NotFoundError(product_id=product_id)
                if product.carousel_position == position:
                    return product
                if position is not None and not product.is_active:
                    # Only products the carousel can show may hold a slot
                    raise ValidationError(
                        "Inactive products cannot hold a carousel position.",
                        field='product_id',
                        product_id=product_id,
                    )
                if position is not None:
                    holder_id = self.holder_of(position, exclude_id=product_id)
                    if holder_id is not None:
                        raise SlotTaken(holder_id=holder_id, position=position)
                previous = product.carousel_position
                product.carousel_position = position
                product.save(update_fields=['carousel_position', 'updated_at'])
        except IntegrityError as exc:
            # Another assignment took the slot between our check and write
            holder_id = self.holder_of(position, exclude_id=product_id)
            logger.warning(
                "Carousel position %s raced for product %s (holder %s)",
                position, product_id, holder_id,
            )
            raise SlotTaken(holder_id=holder_id, position=position) from exc

        logger.info("Carousel: product %s moved from %s to %s", product_id, previous, position)
        return product

    def clear(self, product_id: int) -> Product:
        return self.assign(product_id, None)

    def listing(self) -> List[CarouselEntry]:
        """
        Active products with a position, ascending. Gaps are kept as they
        are.
        """
        products = (
            Product.objects
            .filter(is_active=True, carousel_position__isnull=False)
            .order_by('carousel_position')
            .prefetch_related(Prefetch(
                'photos',
                queryset=ImageAsset.objects.filter(is_primary=True),
                to_attr='primary_photos',
            ))
        )
        entries = []
        for product in products:
            image = None
            if product.primary_photos:
                renditions = product.primary_photos[0].renditions
                image = {
                    size: renditions[size]['url']
                    for size in CAROUSEL_RENDITIONS
                    if size in renditions
                }
            entries.append(CarouselEntry(
                product_id=product.pk,
                title=product.title,
                slug=product.slug,
                price=product.price,
                position=product.carousel_position,
                image=image,
            ))
        return entries
