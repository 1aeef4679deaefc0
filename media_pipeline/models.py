"""
Upload data model — one UploadItem per user-selected file, grouped in an
insertion-ordered UploadBatch. Status changes only go through the batch, keyed
by item id, so concurrent completions can never touch the wrong item.
"""

import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from .errors import Failure


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class UploadStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadStatus.SUCCESS, UploadStatus.ERROR)


# pending → error is reserved for precondition failures (missing destination folder)
ALLOWED_TRANSITIONS: dict[UploadStatus, frozenset[UploadStatus]] = {
    UploadStatus.PENDING: frozenset({UploadStatus.UPLOADING, UploadStatus.ERROR}),
    UploadStatus.UPLOADING: frozenset({UploadStatus.SUCCESS, UploadStatus.ERROR}),
    UploadStatus.SUCCESS: frozenset(),
    UploadStatus.ERROR: frozenset(),
}


class InvalidTransitionError(Exception):
    """Raised when a status change would move an item backwards."""


@dataclass(frozen=True)
class Payload:
    """Binary content plus the MIME type and filename it is sent under."""
    filename: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class UploadItem:
    """A single admitted file and everything known about its upload."""
    original: Payload
    kind: MediaKind
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: UploadStatus = UploadStatus.PENDING
    effective: Payload | None = None  # set only when compression was accepted
    error: Failure | None = None
    remote_id: str | None = None
    remote_name: str | None = None
    preview: memoryview | None = None

    def __post_init__(self):
        if self.preview is None:
            self.preview = memoryview(self.original.data)

    @property
    def payload(self) -> Payload:
        return self.effective or self.original

    @property
    def size_bytes(self) -> int:
        return self.payload.size

    @property
    def was_compressed(self) -> bool:
        return self.effective is not None

    def use_compressed(self, payload: Payload) -> None:
        if self.kind is MediaKind.VIDEO:
            raise ValueError("Video payloads are transmitted unmodified")
        self.effective = payload

    def transition(self, new_status: UploadStatus) -> None:
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Item {self.id}: cannot move from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    def release_preview(self) -> None:
        if self.preview is not None:
            self.preview.release()
            self.preview = None


class UploadBatch:
    """Items staged in the client, kept in admission order."""

    def __init__(self):
        self._items: dict[str, UploadItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[UploadItem]:
        return iter(list(self._items.values()))

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def add(self, item: UploadItem) -> UploadItem:
        self._items[item.id] = item
        return item

    def get(self, item_id: str) -> UploadItem | None:
        return self._items.get(item_id)

    def remove(self, item_id: str) -> UploadItem | None:
        """Drop an item and release its preview. Items mid-upload cannot be removed."""
        item = self._items.get(item_id)
        if item is None:
            return None
        if item.status is UploadStatus.UPLOADING:
            raise InvalidTransitionError(f"Item {item_id} is uploading and cannot be removed")
        del self._items[item_id]
        item.release_preview()
        return item

    def pending(self) -> list[UploadItem]:
        return [item for item in self._items.values() if item.status is UploadStatus.PENDING]

    def set_status(
        self,
        item_id: str,
        status: UploadStatus,
        error: Failure | None = None,
    ) -> UploadItem | None:
        """Apply a status change by id. Returns None if the item was removed meanwhile."""
        item = self._items.get(item_id)
        if item is None:
            return None
        item.transition(status)
        if status is UploadStatus.ERROR:
            item.error = error
        return item

    def counts(self) -> dict[UploadStatus, int]:
        counts = {status: 0 for status in UploadStatus}
        for item in self._items.values():
            counts[item.status] += 1
        return counts

    def clear(self) -> None:
        for item in list(self._items.values()):
            item.release_preview()
        self._items.clear()
