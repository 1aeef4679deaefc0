"""
Adaptive Compressor — picks a resolution/quality tier from the original file
size and re-encodes images on a worker thread. The result is kept only if it is
meaningfully smaller than the original; any failure falls back to the original.
"""

import asyncio
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import PurePath

from PIL import Image, ImageOps
from pillow_heif import register_heif_opener

from .config import Config
from .errors import CompressionError
from .models import MediaKind, Payload, UploadItem

register_heif_opener()

logger = logging.getLogger(__name__)

MIB = 1024 * 1024


@dataclass(frozen=True)
class CompressionTier:
    max_dimension: int
    quality: float
    target_bytes: int


# Ordered by upper bound of the original size
SMALL_TIER = CompressionTier(max_dimension=4000, quality=0.92, target_bytes=5 * MIB)
MEDIUM_TIER = CompressionTier(max_dimension=1920, quality=0.90, target_bytes=3 * MIB)
LARGE_TIER = CompressionTier(max_dimension=1600, quality=0.88, target_bytes=2 * MIB)


def select_tier(original_size: int) -> CompressionTier:
    if original_size < 1 * MIB:
        return SMALL_TIER
    if original_size <= 5 * MIB:
        return MEDIUM_TIER
    return LARGE_TIER


def should_compress(item: UploadItem) -> bool:
    return item.kind is MediaKind.IMAGE and item.original.size > Config.COMPRESSION_MIN_BYTES


def _has_alpha(img: Image.Image) -> bool:
    if img.mode in ("RGBA", "LA"):
        return True
    return img.mode == "P" and "transparency" in img.info


def _encode(img: Image.Image, fmt: str, quality: float) -> bytes:
    buf = io.BytesIO()
    if fmt == "PNG":
        img.save(buf, format="PNG", optimize=True)
    else:
        img.save(buf, format="JPEG", quality=int(round(quality * 100)), optimize=True, progressive=True)
    return buf.getvalue()


def compress_bytes(payload: Payload, tier: CompressionTier) -> Payload:
    """
    Synchronous re-encode — called inside a worker thread.

    Downscales so the longest side fits ``tier.max_dimension`` (never upscales),
    then encodes at the tier quality, stepping quality down while the output is
    still above the tier's target size.

    Raises:
        CompressionError: if the image cannot be decoded or encoded.
    """
    try:
        with Image.open(io.BytesIO(payload.data)) as src:
            if getattr(src, "is_animated", False):
                # Re-encoding would drop every frame but the first
                return payload
            img = ImageOps.exif_transpose(src)
            img.load()
    except Exception as e:
        raise CompressionError(f"Could not decode {payload.filename}: {e}") from e

    try:
        img.thumbnail((tier.max_dimension, tier.max_dimension), Image.LANCZOS)

        if _has_alpha(img):
            fmt, mime, suffix = "PNG", "image/png", ".png"
            img = img.convert("RGBA")
        else:
            fmt, mime, suffix = "JPEG", "image/jpeg", ".jpg"
            if img.mode != "RGB":
                img = img.convert("RGB")

        quality = tier.quality
        data = _encode(img, fmt, quality)
        while (
            fmt == "JPEG"
            and len(data) > tier.target_bytes
            and quality - Config.COMPRESSION_QUALITY_STEP >= Config.COMPRESSION_QUALITY_FLOOR - 1e-9
        ):
            quality -= Config.COMPRESSION_QUALITY_STEP
            data = _encode(img, fmt, quality)
    except Exception as e:
        raise CompressionError(f"Could not re-encode {payload.filename}: {e}") from e

    filename = str(PurePath(payload.filename).with_suffix(suffix))
    return Payload(filename=filename, mime_type=mime, data=data)


class ImageCompressor:
    """Runs compress_bytes off the event loop and applies the acceptance rule."""

    def __init__(self, executor: ThreadPoolExecutor | None = None):
        self._executor = executor or ThreadPoolExecutor(
            max_workers=Config.COMPRESSION_WORKERS,
            thread_name_prefix="compress",
        )

    async def compress(self, item: UploadItem) -> bool:
        """
        Try to shrink ``item``'s payload. Returns True if the compressed
        payload was accepted and is now the one that will be transmitted.
        """
        if not should_compress(item):
            return False

        original = item.original
        tier = select_tier(original.size)
        loop = asyncio.get_event_loop()

        try:
            result = await loop.run_in_executor(self._executor, compress_bytes, original, tier)
        except CompressionError as e:
            logger.warning("Compression skipped for %s: %s", original.filename, e.message)
            return False
        except Exception as e:
            logger.warning("Compression worker failed for %s: %s", original.filename, e)
            return False

        if result.size < original.size * Config.COMPRESSION_ACCEPT_RATIO:
            item.use_compressed(result)
            logger.info(
                "Compressed %s: %d → %d bytes (max %dpx, q=%.2f)",
                original.filename, original.size, result.size, tier.max_dimension, tier.quality,
            )
            return True

        logger.info(
            "Kept original %s: compressed size %d not below %.0f%% of %d",
            original.filename, result.size, Config.COMPRESSION_ACCEPT_RATIO * 100, original.size,
        )
        return False

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
