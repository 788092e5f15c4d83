"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_PUNCHES_PER_DAY = 4
DEFAULT_DAILY_TARGET_SECONDS = 8 * 60 * 60
DEFAULT_TIMEZONE = "UTC"

ALLOWED_PHOTO_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")
MIN_PHOTO_BASE64_LENGTH = 20
DEFAULT_MAX_PHOTO_BYTES = 5 * 1024 * 1024
