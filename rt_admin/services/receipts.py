"""
Receipt Image Intake

Expense receipts are stored inline on the expense as a data URL
(data:<mime>;base64,<payload>), so they live in the same JSON value as
the expense and need no separate file management.

Uploads are checked with Pillow before encoding: the bytes must decode
as an image in one of the configured formats and fit the size limit.
"""

import base64
import binascii
import re
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from rt_admin.config import Settings, get_settings


# Pillow format name -> (extensions it satisfies, canonical mime type)
_FORMATS = {
    "JPEG": ({"jpg", "jpeg"}, "image/jpeg"),
    "PNG": ({"png"}, "image/png"),
    "WEBP": ({"webp"}, "image/webp"),
    "GIF": ({"gif"}, "image/gif"),
}

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<payload>.*)$", re.DOTALL)


class ReceiptError(Exception):
    """The uploaded receipt cannot be accepted or decoded."""
    pass


def _identify(image_bytes: bytes) -> str:
    """
    Return the Pillow format name of the image.

    Raises:
        ReceiptError: If the bytes are not a readable image
    """
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.verify()
            return img.format or ""
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ReceiptError(f"File bukan gambar yang valid: {e}") from e


def encode_receipt(
    image_bytes: bytes,
    mime_type: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Validate an uploaded receipt and return it as a data URL.

    Args:
        image_bytes: Raw upload
        mime_type: Declared type; the detected type wins when they differ
        settings: Defaults to get_settings()

    Raises:
        ReceiptError: Empty, too large, unreadable or unsupported format
    """
    app = (settings or get_settings()).app

    if not image_bytes:
        raise ReceiptError("File bukti kosong.")
    if len(image_bytes) > app.max_upload_size_bytes:
        raise ReceiptError(
            f"Ukuran file melebihi batas {app.max_upload_size_mb} MB."
        )

    detected = _identify(image_bytes)
    extensions, canonical_mime = _FORMATS.get(detected, (set(), mime_type or ""))
    if not extensions & set(app.supported_formats_list):
        raise ReceiptError(
            f"Format gambar '{detected or mime_type}' tidak didukung. "
            f"Gunakan: {', '.join(app.supported_formats_list)}"
        )

    payload = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{canonical_mime};base64,{payload}"


def decode_receipt(data_url: str) -> tuple[str, bytes]:
    """
    Split a stored receipt into (mime_type, image_bytes) for display.

    Raises:
        ReceiptError: If the value is not a base64 data URL
    """
    match = _DATA_URL.match(data_url or "")
    if not match:
        raise ReceiptError("Bukti bukan data URL yang valid.")
    try:
        return match.group("mime"), base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ReceiptError(f"Bukti rusak: {e}") from e
