"""
Storefront service helpers: carousel slots and product removal.
"""

from .carousel import CarouselEntry, CarouselSlotAllocator
from .deletion import (
    GuardedRemoval,
    ReferenceCheck,
    RemovalResult,
    product_removal,
    remove_product,
)

__all__ = [
    "CarouselEntry",
    "CarouselSlotAllocator",
    "GuardedRemoval",
    "ReferenceCheck",
    "RemovalResult",
    "product_removal",
    "remove_product",
]
