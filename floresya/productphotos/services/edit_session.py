"""
Staged edit session for one product's photo set.

The session is a plain object owned by a single editor. It records typed
operations against a committed snapshot and replays them to build the
effective view. Nothing is written until PhotoCommitCoordinator.commit().

    session = PhotoEditSession.open(product.id)
    new_ref = session.stage_add(descriptor)
    session.stage_delete(old_photo_id)
    session.stage_set_primary(new_ref)
    session.effective_view()   # preview
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from floresya.errors import (
    ImageLimitExceeded,
    SessionClosedError,
    UnknownImageReference,
    ValidationError,
)

from .. import constants
from .ingest import PhotoDescriptor
from .snapshot import PhotoSnapshot, load_snapshot

logger = logging.getLogger(__name__)

# Committed photos are referenced by ImageAsset id, staged additions by "new-N"
PhotoRef = Union[int, str]


def normalise_ref(ref: PhotoRef) -> PhotoRef:
    if isinstance(ref, bool):
        raise UnknownImageReference(ref=ref)
    if isinstance(ref, int):
        return ref
    if isinstance(ref, str):
        ref = ref.strip()
        if ref.isdigit():
            return int(ref)
        return ref
    raise UnknownImageReference(ref=ref)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AddPhoto:
    ref: str
    descriptor: PhotoDescriptor


@dataclass(frozen=True)
class DeletePhoto:
    ref: PhotoRef


@dataclass(frozen=True)
class ReorderPhotos:
    refs: Tuple[PhotoRef, ...]


@dataclass(frozen=True)
class SetPrimaryPhoto:
    ref: PhotoRef


PhotoOperation = Union[AddPhoto, DeletePhoto, ReorderPhotos, SetPrimaryPhoto]


class SessionState(str, enum.Enum):
    OPEN = 'open'
    VALIDATING = 'validating'
    APPLYING = 'applying'
    COMMITTED = 'committed'
    DISCARDED = 'discarded'


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EffectivePhoto:
    ref: PhotoRef
    asset_id: Optional[int]
    content_hash: str
    renditions: Dict[str, Any]
    is_primary: bool
    display_order: int = 0

    @property
    def is_new(self) -> bool:
        return self.asset_id is None


@dataclass(frozen=True)
class StagedAddition:
    ref: str
    descriptor: PhotoDescriptor


@dataclass(frozen=True)
class PendingChangeSet:
    base_snapshot_version: int
    additions: Tuple[StagedAddition, ...]
    deletions: FrozenSet[int]
    # Final order of every photo that survives the commit
    reordering: Tuple[PhotoRef, ...]
    new_primary: Optional[PhotoRef]

    @property
    def is_empty(self) -> bool:
        return not self.additions and not self.deletions


class _Replay:
    """Mutable working copy of the photo list used while replaying ops."""

    def __init__(self, snapshot: PhotoSnapshot):
        self.photos: List[EffectivePhoto] = [
            EffectivePhoto(
                ref=photo.id,
                asset_id=photo.id,
                content_hash=photo.content_hash,
                renditions=photo.renditions,
                is_primary=photo.is_primary,
            )
            for photo in snapshot.photos
        ]
        self.deleted: set = set()

    def index_of(self, ref: PhotoRef) -> int:
        for index, photo in enumerate(self.photos):
            if photo.ref == ref:
                return index
        if ref in self.deleted:
            raise UnknownImageReference("Photo is staged for deletion.", ref=ref)
        raise UnknownImageReference(ref=ref)

    def set_primary_at(self, target: Optional[int]) -> None:
        self.photos = [
            replace(photo, is_primary=(index == target))
            for index, photo in enumerate(self.photos)
        ]

    def apply(self, op: PhotoOperation) -> None:
        if isinstance(op, AddPhoto):
            limit = constants.max_photos_per_product()
            if len(self.photos) + 1 > limit:
                raise ImageLimitExceeded(limit=limit, attempted=len(self.photos) + 1)
            first = not any(photo.is_primary for photo in self.photos)
            self.photos.append(EffectivePhoto(
                ref=op.ref,
                asset_id=None,
                content_hash=op.descriptor.content_hash,
                renditions=op.descriptor.renditions,
                is_primary=first,
            ))
        elif isinstance(op, DeletePhoto):
            index = self.index_of(op.ref)
            removed = self.photos.pop(index)
            if removed.asset_id is not None:
                self.deleted.add(removed.asset_id)
            if removed.is_primary and self.photos:
                self.set_primary_at(0)
        elif isinstance(op, ReorderPhotos):
            if len(set(op.refs)) != len(op.refs):
                raise ValidationError("Photo order lists a photo more than once.", field='order')
            listed = [self.photos[self.index_of(ref)] for ref in op.refs]
            rest = [photo for photo in self.photos if photo.ref not in op.refs]
            self.photos = listed + rest
        elif isinstance(op, SetPrimaryPhoto):
            self.set_primary_at(self.index_of(op.ref))
        else:
            raise TypeError(f'Unsupported photo operation: {op!r}')

    def view(self) -> List[EffectivePhoto]:
        return [
            replace(photo, display_order=position)
            for position, photo in enumerate(self.photos, start=1)
        ]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class PhotoEditSession:
    def __init__(self, snapshot: PhotoSnapshot):
        self.snapshot = snapshot
        self.operations: List[PhotoOperation] = []
        self.state = SessionState.OPEN
        self._next_ref = 1

    @classmethod
    def open(cls, product_id: int) -> 'PhotoEditSession':
        return cls(load_snapshot(product_id))

    def __repr__(self):
        return (
            f'<PhotoEditSession product={self.product_id} base={self.base_version} '
            f'ops={len(self.operations)} state={self.state.value}>'
        )

    @property
    def product_id(self) -> int:
        return self.snapshot.product_id

    @property
    def base_version(self) -> int:
        return self.snapshot.version

    @property
    def is_open(self) -> bool:
        return self.state == SessionState.OPEN

    def ensure_open(self) -> None:
        if not self.is_open:
            raise SessionClosedError(state=self.state.value)

    # -- staging --------------------------------------------------------

    def _replay(self, operations: Sequence[PhotoOperation]) -> _Replay:
        replay = _Replay(self.snapshot)
        for op in operations:
            replay.apply(op)
        return replay

    def _stage(self, op: PhotoOperation) -> None:
        self.ensure_open()
        # Raises before anything is recorded
        self._replay([*self.operations, op])
        self.operations.append(op)

    def stage_add(self, descriptor: PhotoDescriptor) -> str:
        """Stage an ingested photo. Returns its reference ("new-N")."""
        ref = f'{constants.PENDING_REF_PREFIX}{self._next_ref}'
        self._stage(AddPhoto(ref=ref, descriptor=descriptor))
        self._next_ref += 1
        return ref

    def stage_delete(self, ref: PhotoRef) -> None:
        self._stage(DeletePhoto(ref=normalise_ref(ref)))

    def stage_reorder(self, refs: Sequence[PhotoRef]) -> None:
        self._stage(ReorderPhotos(refs=tuple(normalise_ref(ref) for ref in refs)))

    def stage_set_primary(self, ref: PhotoRef) -> None:
        self._stage(SetPrimaryPhoto(ref=normalise_ref(ref)))

    # -- views ----------------------------------------------------------

    def effective_view(self) -> List[EffectivePhoto]:
        return self._replay(self.operations).view()

    def change_set(self) -> PendingChangeSet:
        view = self.effective_view()
        surviving_ids = {photo.asset_id for photo in view if photo.asset_id is not None}
        descriptors = {op.ref: op.descriptor for op in self.operations if isinstance(op, AddPhoto)}
        primary = next((photo.ref for photo in view if photo.is_primary), None)
        return PendingChangeSet(
            base_snapshot_version=self.base_version,
            additions=tuple(
                StagedAddition(ref=photo.ref, descriptor=descriptors[photo.ref])
                for photo in view if photo.is_new
            ),
            deletions=frozenset(
                photo.id for photo in self.snapshot.photos if photo.id not in surviving_ids
            ),
            reordering=tuple(photo.ref for photo in view),
            new_primary=primary,
        )

    def discard(self) -> List[str]:
        """
        Drop every staged operation and close the session.

        Stored renditions are left alone; uncommitted ones are collected by
        the orphan sweep. Returns the hashes of the dropped additions.
        """
        self.ensure_open()
        dropped = [op.descriptor.content_hash for op in self.operations if isinstance(op, AddPhoto)]
        self.operations = []
        self.state = SessionState.DISCARDED
        logger.info(
            "Discarded photo session for product %s (%d staged additions dropped)",
            self.product_id, len(dropped),
        )
        return dropped
