import io
import logging

from PIL import Image, UnidentifiedImageError

from app.features.favicons.schemas.favicon import NormalizedImage

logger = logging.getLogger(__name__)

TARGET_ICON_SIZE = 16
JPEG_QUALITY = 90
MAX_IMAGE_PIXELS = 2048 * 2048


def _image_format(content_type: str) -> str | None:
    content_type = content_type.lower()
    if "png" in content_type:
        return "PNG"
    if "jpeg" in content_type or "jpg" in content_type:
        return "JPEG"
    return None


def normalize_image(
    data: bytes,
    content_type: str,
    size: int = TARGET_ICON_SIZE,
    jpeg_quality: int = JPEG_QUALITY,
    max_pixels: int = MAX_IMAGE_PIXELS,
) -> NormalizedImage:
    """
    Shrink PNG/JPEG icons larger than size x size using nearest-neighbour scaling.

    Other formats, small images, undecodable data and re-encodings that are not
    strictly smaller all come back with the original bytes. So do images over
    ``max_pixels``; only the header is read for those. CPU-bound, so callers on
    an event loop should run it in a worker thread.
    """
    fmt = _image_format(content_type)
    if fmt is None:
        return NormalizedImage(data)

    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.format != fmt:
                return NormalizedImage(data)
            if img.width * img.height > max_pixels:
                logger.debug(f"Skipping normalization of {img.width}x{img.height} icon")
                return NormalizedImage(data)
            if img.width <= size and img.height <= size:
                return NormalizedImage(data)

            if fmt == "PNG":
                resized = img.convert("RGBA").resize((size, size), Image.Resampling.NEAREST)
                save_kwargs = {}
            else:
                resized = img.convert("RGB").resize((size, size), Image.Resampling.NEAREST)
                save_kwargs = {"quality": jpeg_quality}

            buf = io.BytesIO()
            resized.save(buf, format=fmt, **save_kwargs)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        logger.debug(f"Keeping original icon bytes ({content_type}): {e}")
        return NormalizedImage(data)

    encoded = buf.getvalue()
    if len(encoded) >= len(data):
        return NormalizedImage(data)

    return NormalizedImage(encoded, resized=True)
