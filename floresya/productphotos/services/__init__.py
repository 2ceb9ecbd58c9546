"""
Photo set services: ingest, snapshot reads, staged edits and the commit.
"""
from .commit import CommitResult, PhotoCommitCoordinator
from .edit_session import (
    AddPhoto,
    DeletePhoto,
    EffectivePhoto,
    PendingChangeSet,
    PhotoEditSession,
    ReorderPhotos,
    SessionState,
    SetPrimaryPhoto,
)
from .ingest import PhotoDescriptor, PhotoIngestService
from .snapshot import CommittedPhoto, PhotoSnapshot, load_snapshot

__all__ = [
    'AddPhoto',
    'CommitResult',
    'CommittedPhoto',
    'DeletePhoto',
    'EffectivePhoto',
    'PendingChangeSet',
    'PhotoCommitCoordinator',
    'PhotoDescriptor',
    'PhotoEditSession',
    'PhotoIngestService',
    'PhotoSnapshot',
    'ReorderPhotos',
    'SessionState',
    'SetPrimaryPhoto',
    'load_snapshot',
]
