"""Filename helper for export download headers."""

import re

MAX_HEADER_LENGTH = 200
FALLBACK_FILENAME = "export"


def sanitize_filename(title: str) -> str:
    """Turn a set title into a download filename stem.

    Control characters, quotes, backslashes and path separators are removed
    and surrounding whitespace trimmed. Unicode letters are kept.
    An empty result becomes ``"export"``.
    """
    sanitized = re.sub(r'[\x00-\x1f\x7f"\\/]', "", title).strip()
    sanitized = sanitized[:MAX_HEADER_LENGTH].rstrip()
    return sanitized or FALLBACK_FILENAME
