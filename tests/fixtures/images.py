"""Image bytes built with Pillow for compressor and scheduler tests."""

import io

from PIL import Image

MIB = 1024 * 1024


def gradient_image(width: int, height: int, mode: str = "RGB") -> Image.Image:
    img = Image.linear_gradient("L").resize((width, height))
    if mode == "RGBA":
        rgba = Image.merge("RGBA", (img, img.transpose(Image.Transpose.FLIP_LEFT_RIGHT), img, img))
        return rgba
    return Image.merge("RGB", (img, img.transpose(Image.Transpose.FLIP_TOP_BOTTOM), img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)))


def noisy_image(width: int, height: int) -> Image.Image:
    noise = Image.effect_noise((width, height), 80)
    return Image.merge("RGB", (noise, noise.transpose(Image.Transpose.FLIP_LEFT_RIGHT), noise.transpose(Image.Transpose.FLIP_TOP_BOTTOM)))


def jpeg_bytes(img: Image.Image, quality: int = 95) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def padded_jpeg(width: int, height: int, total_bytes: int) -> bytes:
    """A JPEG of exactly ``total_bytes``; the padding sits after the EOI marker."""
    data = jpeg_bytes(gradient_image(width, height))
    if len(data) > total_bytes:
        raise ValueError("image already larger than requested size")
    return data + b"\x00" * (total_bytes - len(data))


def dimensions(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size
