"""Image normalisation applied to every uploaded document photo.

Uploads are re-encoded as JPEG and shrunk to fit inside a square bounding
box. Images already smaller than the box are never enlarged.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError

from ..domain.errors import ProcessingError

logger = logging.getLogger(__name__)

OUTPUT_CONTENT_TYPE = "image/jpeg"
DEFAULT_MAX_DIMENSION = 1200
DEFAULT_JPEG_QUALITY = 80


def normalize_image(
    data: bytes,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> bytes:
    """Fit ``data`` inside ``max_dimension`` x ``max_dimension`` and re-encode as JPEG.

    Aspect ratio is preserved. Transparency is flattened since JPEG has no
    alpha channel.

    Raises:
        ProcessingError: If the bytes cannot be decoded or encoded as an image
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.thumbnail((max_dimension, max_dimension))
            if image.mode != "RGB":
                image = image.convert("RGB")
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Image processing failed: {e}")
        raise ProcessingError(f"Image processing failed: {e}")

    output = buffer.getvalue()
    logger.debug(f"Normalized image: {len(data)} -> {len(output)} bytes")
    return output
