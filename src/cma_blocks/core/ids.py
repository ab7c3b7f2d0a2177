"""Record and block IDs.

New IDs are random (version 4) UUIDs written as 22 characters of URL-safe
base64 without padding. Records created before that scheme carry integer IDs,
which are still accepted up to the largest 48-bit unsigned value.
"""

import base64
import binascii
import re
import uuid

MAX_LEGACY_ID = 2**48 - 1

_URL_SAFE_BASE64 = re.compile(r"[A-Za-z0-9_-]+={0,2}")


def generate_id() -> str:
    raw = bytearray(uuid.uuid4().bytes)
    # A clear top bit keeps the first character in [A-Za-f].
    raw[0] &= 0x7F
    return base64.urlsafe_b64encode(bytes(raw)).decode("ascii").rstrip("=")


def is_valid_id(value: str) -> bool:
    """Tell whether ``value`` could be a record ID, legacy integers included."""
    if value.isascii() and value.isdigit():
        return int(value) <= MAX_LEGACY_ID

    if not _URL_SAFE_BASE64.fullmatch(value):
        return False
    unpadded = value.rstrip("=")
    try:
        raw = base64.urlsafe_b64decode(unpadded + "=" * (-len(unpadded) % 4))
    except (binascii.Error, ValueError):
        return False

    if len(raw) != 16:
        return False
    # RFC 4122 variant, version 4.
    return (raw[8] & 0b11000000) == 0b10000000 and raw[6] >> 4 == 4
