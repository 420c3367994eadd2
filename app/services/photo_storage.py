"""
Memorial photo uploads.

Photos are validated with Pillow, re-encoded to strip metadata and stored under
a random name in the upload folder served from ``/static/uploads``.
"""

import io
import logging
import os
import secrets
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

MAX_PHOTO_SIZE = 5 * 1024 * 1024  # 5MB
ALLOWED_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.webp')
_FORMAT_EXTENSIONS = {'JPEG': '.jpg', 'PNG': '.png', 'GIF': '.gif', 'WEBP': '.webp'}
PUBLIC_PREFIX = '/static/uploads/'


def save_photo(file_storage, upload_folder: str, max_size: int = MAX_PHOTO_SIZE) -> Optional[str]:
    """
    Validate and store an uploaded photo.

    Args:
        file_storage: werkzeug FileStorage from the form
        upload_folder: Local folder to save to
        max_size: Maximum accepted size in bytes

    Returns:
        Public URL path of the stored photo, or None if the upload was rejected
    """
    if file_storage is None or not getattr(file_storage, 'filename', None):
        return None

    _, ext = os.path.splitext(file_storage.filename)
    if ext.lower() not in ALLOWED_EXTENSIONS:
        logger.warning(f"Rejected photo with extension {ext!r}")
        return None

    content = file_storage.read(max_size + 1)
    if len(content) > max_size:
        logger.warning(f"Rejected photo larger than {max_size} bytes")
        return None

    try:
        Image.open(io.BytesIO(content)).verify()
        img = Image.open(io.BytesIO(content))
    except (UnidentifiedImageError, OSError, SyntaxError):
        logger.warning(f"Uploaded file is not a valid image: {file_storage.filename}")
        return None

    img_format = (img.format or '').upper()
    ext = _FORMAT_EXTENSIONS.get(img_format)
    if ext is None:
        logger.warning(f"Unsupported image format {img_format!r}")
        return None

    os.makedirs(upload_folder, exist_ok=True)
    filename = secrets.token_hex(8) + ext
    filepath = os.path.join(upload_folder, filename)

    if img_format == 'GIF':
        # keep animation frames
        with open(filepath, 'wb') as f:
            f.write(content)
    else:
        if img_format == 'JPEG':
            img = img.convert('RGB')
        img.save(filepath, format=img_format, optimize=True, quality=85)

    logger.info(f"Stored memorial photo {filename}")
    return PUBLIC_PREFIX + filename
