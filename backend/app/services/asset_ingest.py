"""
Image asset ingestion.
Turns uploaded files into data URLs and data URLs back into Pillow images.
"""

import base64
import binascii
import logging
from io import BytesIO
from typing import Optional

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def encode_data_url(data: bytes, media_type: str) -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


async def read_upload_as_data_url(upload: UploadFile) -> Optional[str]:
    """
    Read an uploaded file into a base64 data URL.

    No size limit and no downscaling. Returns None if the file cannot be read;
    callers leave the post unchanged in that case.
    """
    try:
        data = await upload.read()
    except (OSError, RuntimeError) as e:
        logger.error(f"Failed to read upload {upload.filename!r}: {e}")
        return None
    finally:
        await upload.close()

    media_type = upload.content_type or DEFAULT_MEDIA_TYPE
    return encode_data_url(data, media_type)


def decode_data_url(value: str) -> Optional[Image.Image]:
    """Decode a base64 data URL into an image. Non-data references give None."""
    if not value or not value.startswith("data:"):
        return None

    header, _, payload = value.partition(",")
    if not header.endswith(";base64"):
        logger.warning("Ignoring non-base64 data URL")
        return None

    try:
        img = Image.open(BytesIO(base64.b64decode(payload, validate=True)))
        img.load()
    except (binascii.Error, UnidentifiedImageError, OSError) as e:
        logger.warning(f"Could not decode image data URL: {e}")
        return None

    return img
