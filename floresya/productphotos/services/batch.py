"""
Turn a one-shot commit request (hashes + ids) into a staged session.

Stateless API clients keep their pending edits locally and send them in one
request; this rebuilds the equivalent PhotoEditSession so the same
validation and commit path applies.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Union

from floresya.errors import StaleSnapshotError, UnknownImageReference, ValidationError

from ..models import ImageAsset
from ..storage import RenditionStore
from .edit_session import PhotoEditSession, PhotoRef
from .ingest import PhotoDescriptor
from .snapshot import load_snapshot


def descriptor_for_hash(content_hash: str, store: Optional[RenditionStore] = None) -> PhotoDescriptor:
    """Descriptor of an already ingested upload, by content hash."""
    renditions = (
        ImageAsset.objects.filter(content_hash=content_hash)
        .values_list('renditions', flat=True)
        .first()
    )
    if renditions:
        return PhotoDescriptor(content_hash, renditions)
    store = store or RenditionStore()
    if not store.has_complete_set(content_hash):
        raise ValidationError(
            "Photo was not ingested or its renditions are gone.",
            field='additions',
            content_hash=content_hash,
        )
    return PhotoDescriptor(content_hash, store.describe(content_hash))


class _AdditionRefs:
    """Maps addition hashes to session refs: n-th use -> n-th addition."""

    def __init__(self, refs_by_hash: Dict[str, List[str]]):
        self.refs_by_hash = refs_by_hash
        self.used: Dict[str, int] = defaultdict(int)

    def resolve(self, ref: Union[int, str], field: str) -> PhotoRef:
        if isinstance(ref, int):
            return ref
        candidates = self.refs_by_hash.get(ref)
        if not candidates:
            raise UnknownImageReference(field=field, ref=ref)
        index = self.used[ref]
        if index >= len(candidates):
            raise ValidationError("Photo order lists an addition more than once.", field=field, ref=ref)
        self.used[ref] += 1
        return candidates[index]


def session_from_request(
    product_id: int,
    base_version: int,
    additions: Sequence[str] = (),
    deletions: Sequence[int] = (),
    order: Sequence[Union[int, str]] = (),
    primary: Optional[Union[int, str]] = None,
    store: Optional[RenditionStore] = None,
) -> PhotoEditSession:
    snapshot = load_snapshot(product_id)
    if snapshot.version != base_version:
        raise StaleSnapshotError(
            product_id=product_id,
            base_version=base_version,
            current_version=snapshot.version,
        )

    session = PhotoEditSession(snapshot)
    # Deletions first so a full set can swap photos within the limit
    for photo_id in deletions:
        session.stage_delete(photo_id)

    refs_by_hash: Dict[str, List[str]] = defaultdict(list)
    for content_hash in additions:
        refs_by_hash[content_hash].append(session.stage_add(descriptor_for_hash(content_hash, store)))

    if order:
        order_refs = _AdditionRefs(refs_by_hash)
        session.stage_reorder([order_refs.resolve(ref, 'order') for ref in order])
    if primary is not None:
        session.stage_set_primary(_AdditionRefs(refs_by_hash).resolve(primary, 'primary'))
    return session
