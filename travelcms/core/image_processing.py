"""
Image File Checks
=================

Pre-upload checks for local image files: the file must exist, be non-empty,
stay under the size limit and be readable by Pillow. The detected format also
decides the Content-Type sent with the upload.

Dependencies:
-------------
- PIL (Pillow): Image identification and validation
"""

import logging
import mimetypes
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from travelcms.core import config

logger = logging.getLogger(__name__)


def validate_image(image_path: Path) -> Tuple[bool, Optional[str]]:
    """
    Validate that an image file can be uploaded.

    Args:
        image_path: Path to the image file

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> valid, error = validate_image(Path("public/Goa.webp"))
        >>> if not valid:
        ...     print(error)
    """
    try:
        if not image_path.exists():
            return False, "File does not exist"

        if not image_path.is_file():
            return False, "Path is not a file"

        size = image_path.stat().st_size
        if size == 0:
            return False, "File is empty"

        if size > config.MAX_IMAGE_SIZE_MB * 1024 * 1024:
            return False, f"File exceeds {config.MAX_IMAGE_SIZE_MB}MB limit"

        with Image.open(image_path) as img:
            img.verify()

        return True, None

    except UnidentifiedImageError:
        return False, "Cannot identify image file"
    except PermissionError:
        return False, "Permission denied"
    except (OSError, SyntaxError, ValueError) as e:
        return False, f"Validation failed: {e}"


def detect_content_type(image_path: Path) -> str:
    """
    MIME type for an image, from the format Pillow detects.

    Falls back to the extension, then to ``config.DEFAULT_IMAGE_CONTENT_TYPE``.
    """
    try:
        with Image.open(image_path) as img:
            mime = Image.MIME.get(img.format or "")
        if mime:
            return mime
    except (OSError, UnidentifiedImageError) as e:
        logger.debug(f"Could not identify {image_path.name} for content type: {e}")

    guessed, _ = mimetypes.guess_type(image_path.name)
    return guessed or config.DEFAULT_IMAGE_CONTENT_TYPE
