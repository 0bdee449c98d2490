"""
Image normalization for uploaded room photos.

Uploads are converted to a canonical RGBA PNG of a fixed square size, plus a BlurHash
fingerprint used as a low-resolution placeholder and for similarity checks.

The resize is a stretch-fit to width x width and does not preserve aspect ratio.
"""
import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass

import blurhash
from PIL import Image, ImageOps, UnidentifiedImageError

from roomspark.core.config import settings
from roomspark.core.exceptions import ProcessingError, ValidationError

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 20 * 1024 * 1024  # 20MB
# RGBA pixel buffer; fits a 48MP camera photo
MAX_DECODED_BYTES = 200 * 1024 * 1024

# BlurHash component grid
FINGERPRINT_X_COMPONENTS = 4
FINGERPRINT_Y_COMPONENTS = 3
FINGERPRINT_SAMPLE_SIZE = 64

_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")

_CONTENT_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}


@dataclass
class NormalizedImage:
    """Canonical image bytes plus fingerprint"""

    canonical_bytes: bytes
    fingerprint: str
    width: int
    height: int
    content_type: str = "image/png"


def decode_base64_image(payload: str) -> bytes:
    """Decode a base64 photo, with or without a data URL prefix"""
    if not payload or not isinstance(payload, str):
        raise ValidationError("Photo is required")

    data = _DATA_URL_PREFIX.sub("", payload.strip())
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Photo must be base64 encoded")


def _open_image(raw: bytes, max_decoded_bytes: int = MAX_DECODED_BYTES) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(raw))
    except Image.DecompressionBombError as e:
        raise ProcessingError(f"Image dimensions are too large: {e}")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ProcessingError(f"Could not decode image: {e}")

    # Header is parsed lazily; reject before pixel data is decoded
    if image.width * image.height * 4 > max_decoded_bytes:
        raise ProcessingError(f"Decoded image {image.width}x{image.height} exceeds {max_decoded_bytes // (1024 * 1024)}MB limit")

    try:
        image.load()
    except Image.DecompressionBombError as e:
        raise ProcessingError(f"Image dimensions are too large: {e}")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ProcessingError(f"Could not decode image: {e}")
    return image


def _fingerprint(image: Image.Image) -> str:
    sample = image.convert("RGB").resize((FINGERPRINT_SAMPLE_SIZE, FINGERPRINT_SAMPLE_SIZE), Image.Resampling.BILINEAR)
    return blurhash.encode(sample, x_components=FINGERPRINT_X_COMPONENTS, y_components=FINGERPRINT_Y_COMPONENTS)


def compute_fingerprint(image_bytes: bytes) -> str:
    """BlurHash of an encoded image; raises ProcessingError when it cannot be decoded"""
    return _fingerprint(_open_image(image_bytes))


def normalize_image(
    raw: bytes,
    width: int = None,
    image_format: str = "PNG",
    quality: int = None,
    max_bytes: int = None,
    max_decoded_bytes: int = None,
) -> NormalizedImage:
    """
    Convert raw upload bytes to the canonical form.

    Args:
        raw: Encoded image in any format Pillow can read
        width: Output edge length; output is always width x width
        image_format: Pillow format name for the output encoding
        quality: Encoder quality for lossy formats
        max_bytes: Hard cap on the raw input size
        max_decoded_bytes: Hard cap on width * height * 4, checked before decoding

    Returns:
        NormalizedImage with canonical bytes and fingerprint
    """
    width = width or settings.normalized_image_width
    quality = quality or settings.normalized_image_quality
    max_bytes = max_bytes or MAX_UPLOAD_BYTES
    max_decoded_bytes = max_decoded_bytes or MAX_DECODED_BYTES

    if not raw:
        raise ProcessingError("Image data is empty")
    if len(raw) > max_bytes:
        raise ProcessingError(f"File size exceeds {max_bytes // (1024 * 1024)}MB limit")

    image = _open_image(raw, max_decoded_bytes)
    logger.info(f"Normalizing image: {image.format} {image.width}x{image.height}, {len(raw) / 1024 / 1024:.2f}MB")

    # Smartphone photos carry their rotation in EXIF
    image = ImageOps.exif_transpose(image)
    canonical = image.convert("RGBA").resize((width, width), Image.Resampling.LANCZOS)
    fingerprint = _fingerprint(canonical)

    buffer = io.BytesIO()
    fmt = image_format.upper()
    if fmt == "PNG":
        canonical.save(buffer, format=fmt)
    elif fmt == "JPEG":
        canonical.convert("RGB").save(buffer, format=fmt, quality=quality)
    else:
        canonical.save(buffer, format=fmt, quality=quality)
    canonical_bytes = buffer.getvalue()

    logger.info(f"Normalized image to {width}x{width} {fmt}, {len(canonical_bytes) / 1024 / 1024:.2f}MB")

    return NormalizedImage(
        canonical_bytes=canonical_bytes,
        fingerprint=fingerprint,
        width=width,
        height=width,
        content_type=_CONTENT_TYPES.get(fmt, f"image/{fmt.lower()}"),
    )
