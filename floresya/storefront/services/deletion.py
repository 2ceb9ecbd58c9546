"""
Reference-guarded removal: rows other tables still point at are
deactivated, everything else is deleted for real.

The referencing tables are declared, not hand-coded per entity::

    PRODUCT_REFERENCES = (ReferenceCheck('orders.OrderItem', 'product'),)

and all of them are checked with a single query (one EXISTS per check).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

from django.apps import apps
from django.db import transaction
from django.db.models import Exists, OuterRef, ProtectedError
from django.utils import timezone

from floresya.errors import NotFoundError

from ..models import Product

logger = logging.getLogger(__name__)

LOGICAL = 'logical'
PHYSICAL = 'physical'


@dataclass(frozen=True)
class ReferenceCheck:
    model_label: str
    fk_field: str

    @property
    def model(self):
        return apps.get_model(self.model_label)

    def exists_for(self, outer_ref='pk'):
        return Exists(self.model.objects.filter(**{self.fk_field: OuterRef(outer_ref)}))


@dataclass(frozen=True)
class RemovalResult:
    pk: int
    deletion_type: str
    references: Tuple[str, ...] = ()

    @property
    def is_soft(self) -> bool:
        return self.deletion_type == LOGICAL


@dataclass
class GuardedRemoval:
    model: Any
    checks: Sequence[ReferenceCheck]
    # Field values written on soft delete
    deactivate: Dict[str, Any] = field(default_factory=lambda: {'is_active': False})

    def references(self, pk) -> Tuple[str, ...]:
        annotations = {f'ref_{index}': check.exists_for() for index, check in enumerate(self.checks)}
        row = self.model.objects.filter(pk=pk).annotate(**annotations).values('pk', *annotations).first()
        if row is None:
            raise NotFoundError(model=self.model._meta.label, pk=pk)
        return tuple(
            check.model_label
            for index, check in enumerate(self.checks)
            if row[f'ref_{index}']
        )

    def _soft_delete(self, pk) -> None:
        values = dict(self.deactivate)
        if any(f.name == 'updated_at' for f in self.model._meta.get_fields()):
            values['updated_at'] = timezone.now()
        self.model.objects.filter(pk=pk).update(**values)

    def remove(self, pk) -> RemovalResult:
        label = self.model._meta.label
        with transaction.atomic():
            found = self.references(pk)
            if not found:
                try:
                    with transaction.atomic():
                        self.model.objects.filter(pk=pk).delete()
                except ProtectedError as exc:
                    # A reference appeared after the check
                    found = tuple(sorted({obj._meta.label for obj in exc.protected_objects}))
                else:
                    logger.info("%s %s deleted (no references)", label, pk)
                    return RemovalResult(pk=pk, deletion_type=PHYSICAL)
            self._soft_delete(pk)

        logger.info("%s %s deactivated (referenced by %s)", label, pk, ', '.join(found))
        return RemovalResult(pk=pk, deletion_type=LOGICAL, references=found)


PRODUCT_REFERENCES = (
    ReferenceCheck('orders.OrderItem', 'product'),
)


def product_removal() -> GuardedRemoval:
    # Deactivated products also give up their carousel slot
    return GuardedRemoval(
        model=Product,
        checks=PRODUCT_REFERENCES,
        deactivate={'is_active': False, 'carousel_position': None},
    )


def remove_product(product_id: int) -> RemovalResult:
    """
    Delete a product, or only deactivate it when orders reference it.
    Photos go with a physically deleted product (cascade), and their
    renditions are cleaned up asynchronously.
    """
    return product_removal().remove(product_id)
