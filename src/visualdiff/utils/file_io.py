"""Helper utilities for file input/output."""

import re


def sanitize_filename(filename: str, max_length: int = 50) -> str:
    """Replace anything but letters, digits, dots and dashes with ``_``.

    The result is truncated to ``max_length`` characters so it can safely be
    used as a directory name.
    """

    return re.sub(r"[^a-zA-Z0-9.\-]", "_", filename)[:max_length]
