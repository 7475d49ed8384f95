"""ULID generation helper utilities."""

import re
from typing import Optional

from ulid import ULID

ULID_PATTERN = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def parse_ulid(ulid_str: str) -> Optional[ULID]:
    """Parse and validate a ULID string."""
    try:
        return ULID.from_str(ulid_str)
    except (ValueError, TypeError, AttributeError):
        return None


def is_valid_ulid(ulid_str: str) -> bool:
    """Check if a string is a valid ULID in canonical (uppercase Crockford) form."""
    if not isinstance(ulid_str, str) or not ULID_PATTERN.match(ulid_str):
        return False
    return parse_ulid(ulid_str) is not None
