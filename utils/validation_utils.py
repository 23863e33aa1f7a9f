"""
utils/validation_utils.py

Purpose: Input validation

- Email normalization and shape checks
- Upload filename sanitization
"""

import os
import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Characters allowed in transient upload file names
UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

def normalize_email(email: str) -> str:
    """
    Trims and lower-cases an email address.

    Args:
        email: Raw email input

    Returns:
        Normalized email ("" for empty input)
    """
    if not email:
        return ""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    """
    Validates the basic shape of an email address (local@domain.tld).
    """
    if not email or len(email) > 254:
        return False
    return bool(EMAIL_PATTERN.match(email))


def sanitize_filename(filename: Optional[str], default: str = "receipt") -> str:
    """
    Reduces a client-supplied filename to a safe basename.

    Path components are dropped and any character outside
    [A-Za-z0-9._-] is replaced with an underscore.

    Examples:
        "../../etc/passwd" -> "passwd"
        "my receipt (1).png" -> "my_receipt_1_.png"
    """
    if not filename:
        return default

    # Strip both POSIX and Windows path components
    name = os.path.basename(filename.replace("\\", "/"))
    name = UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")

    return name[:120] or default
