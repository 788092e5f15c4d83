from __future__ import annotations

import base64
import binascii
import io
import math
import warnings
from typing import Any

from PIL import Image, UnidentifiedImageError

from ..core.constants import ALLOWED_PHOTO_MIME_TYPES, MIN_PHOTO_BASE64_LENGTH
from ..core.enums import PunchType
from ..core.exceptions import ValidationError

_PIL_FORMAT_TO_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_punch_type(value: Any) -> PunchType:
    try:
        return PunchType(str(value or "").strip().upper())
    except ValueError:
        allowed = ", ".join(t.value for t in PunchType)
        raise ValidationError(f"type must be one of: {allowed}")


def _require_number(value: Any, field_name: str) -> float:
    # JSON numbers only, not numeric strings or booleans
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    number = float(value)
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    return number


def require_coordinate(value: Any, field_name: str, *, limit: float) -> float:
    number = _require_number(value, field_name)
    if not -limit <= number <= limit:
        raise ValidationError(f"{field_name} out of range")
    return number


def require_accuracy(value: Any) -> float:
    number = _require_number(value, "accuracyM")
    if number < 0:
        raise ValidationError("accuracyM must not be negative")
    return number


def decode_photo(photo_base64: str, photo_mime: str, *, max_bytes: int) -> bytes:
    """Decode a base64 selfie (no ``data:`` prefix) and check it is a real image of the declared type."""

    mime = (photo_mime or "").strip().lower()
    if mime not in ALLOWED_PHOTO_MIME_TYPES:
        raise ValidationError(f"photoMime must be one of: {', '.join(ALLOWED_PHOTO_MIME_TYPES)}")

    raw = (photo_base64 or "").strip()
    if len(raw) < MIN_PHOTO_BASE64_LENGTH:
        raise ValidationError(f"photoBase64 must have at least {MIN_PHOTO_BASE64_LENGTH} characters")

    try:
        payload = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("photoBase64 is not valid base64")

    if len(payload) > max_bytes:
        raise ValidationError(f"Photo larger than {max_bytes} bytes")

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            with Image.open(io.BytesIO(payload)) as img:
                detected = _PIL_FORMAT_TO_MIME.get(img.format or "")
                img.verify()
    except (Image.DecompressionBombError, Image.DecompressionBombWarning):
        raise ValidationError("Photo dimensions are too large")
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("Photo could not be read as an image")

    if detected != mime:
        raise ValidationError(f"Photo content does not match {mime}")
    return payload
