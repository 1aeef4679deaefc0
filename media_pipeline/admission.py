"""
File Admission Filter — classifies files and rejects bad types or oversize
files before any compression or network work starts.
"""

import logging
from dataclasses import dataclass, field
from pathlib import PurePath

from .config import Config
from .errors import AdmissionError
from .models import MediaKind, Payload, UploadBatch, UploadItem

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/heic",
    "image/heif",
    "video/mp4",
    "video/mpeg",
    "video/quicktime",
    "video/x-msvideo",
    "video/webm",
})

EXTENSION_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "heic": "image/heic",
    "heif": "image/heif",
    "mp4": "video/mp4",
    "mpeg": "video/mpeg",
    "mpg": "video/mpeg",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "webm": "video/webm",
}

VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi", "webm"})

MIB = 1024 * 1024


@dataclass
class RawFile:
    """A file as handed over by the picker: name, declared MIME type, bytes."""
    name: str
    mime_type: str
    data: bytes
    declared_size: int | None = None

    @property
    def size(self) -> int:
        return self.declared_size if self.declared_size is not None else len(self.data)

    @property
    def extension(self) -> str:
        return PurePath(self.name).suffix.lstrip(".").lower()


@dataclass
class AdmissionReport:
    accepted: list[UploadItem] = field(default_factory=list)
    rejected: list[AdmissionError] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [err.message for err in self.rejected]


def classify_kind(mime_type: str, filename: str) -> MediaKind:
    ext = PurePath(filename).suffix.lstrip(".").lower()
    if (mime_type or "").lower().startswith("video/") or ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return MediaKind.IMAGE


def size_ceiling(kind: MediaKind) -> int:
    return Config.MAX_VIDEO_BYTES if kind is MediaKind.VIDEO else Config.MAX_IMAGE_BYTES


def format_size(num_bytes: int) -> str:
    return f"{num_bytes / MIB:.1f} MB"


def check_size(name: str, size: int, kind: MediaKind) -> None:
    """Raise AdmissionError if ``size`` exceeds the ceiling for ``kind``."""
    ceiling = size_ceiling(kind)
    if size > ceiling:
        raise AdmissionError(
            f"{name} is too large ({format_size(size)}). "
            f"Max {kind.value} size is {ceiling // MIB} MB.",
            filename=name,
            code="too_large",
        )


def check_file(raw: RawFile) -> tuple[MediaKind, str]:
    """Validate type and size. Returns (kind, effective MIME type)."""
    mime = (raw.mime_type or "").strip().lower()
    ext = raw.extension

    if mime in ALLOWED_MIME_TYPES:
        effective_mime = mime
    elif ext in EXTENSION_MIME_TYPES:
        # Pickers on some platforms report HEIC or MOV with an empty or generic type
        effective_mime = EXTENSION_MIME_TYPES[ext]
    else:
        raise AdmissionError(
            f"{raw.name} is not a supported image or video file.",
            filename=raw.name,
            code="invalid_type",
        )

    kind = classify_kind(effective_mime, raw.name)
    check_size(raw.name, raw.size, kind)
    return kind, effective_mime


def admit(files: list[RawFile], batch: UploadBatch) -> AdmissionReport:
    """
    Run every file through the filter and append accepted ones to ``batch``.

    A rejected file never affects the others in the same selection.
    """
    report = AdmissionReport()
    for raw in files:
        try:
            kind, mime = check_file(raw)
        except AdmissionError as e:
            logger.info("Rejected %s: %s", raw.name, e.code)
            report.rejected.append(e)
            continue

        item = UploadItem(
            original=Payload(filename=raw.name, mime_type=mime, data=raw.data),
            kind=kind,
        )
        batch.add(item)
        report.accepted.append(item)

    logger.debug("Admission: %d accepted, %d rejected", len(report.accepted), len(report.rejected))
    return report
