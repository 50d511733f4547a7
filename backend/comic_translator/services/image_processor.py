"""Upload image inspection using Pillow"""
from PIL import Image, UnidentifiedImageError
from typing import Tuple
import io
import logging

from ..errors import UnsupportedMediaTypeError

logger = logging.getLogger(__name__)

# Pillow format names for the accepted upload types
FORMAT_EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "GIF": ".gif", "WEBP": ".webp"}
FORMAT_MIME_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png", "GIF": "image/gif", "WEBP": "image/webp"}


def inspect_image(data: bytes) -> Tuple[int, int, str]:
    """
    Check that uploaded bytes decode as a supported image

    Args:
        data: Raw upload bytes

    Returns:
        (width, height, format) of the image

    Raises:
        UnsupportedMediaTypeError: when the bytes are not a JPEG, PNG, GIF or WebP image
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
            width, height = image.size
            image_format = image.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        logger.warning(f"Rejected upload that is not a readable image: {e}")
        raise UnsupportedMediaTypeError("Uploaded file is not a valid image") from e

    if image_format not in FORMAT_EXTENSIONS:
        raise UnsupportedMediaTypeError(f"Unsupported image format: {image_format}")
    return width, height, image_format


def detected_mime_type(data: bytes) -> str:
    """MIME type of the image format Pillow detects in ``data``"""
    _, _, image_format = inspect_image(data)
    return FORMAT_MIME_TYPES[image_format]
