"""Human-readable size strings.

`parse_size` accepts the format used by ``--max-artifacts-size`` and the
``SPMHOST_MAX_*`` settings: a decimal number followed by an optional unit.

    "100"     -> 100
    "1KB"     -> 1024
    "1.5 MB"  -> 1572864
    "2g"      -> 2147483648

Units are binary (1 KB = 1024 bytes) and case-insensitive. The trailing
"B" is optional. Anything after the unit makes the whole string invalid.
"""

import re
from typing import Optional

_SIZE_RE = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)\s*([A-Z]*)$")

_MULTIPLIERS = {
    "": 1,
    "K": 1024,
    "KB": 1024,
    "M": 1024**2,
    "MB": 1024**2,
    "G": 1024**3,
    "GB": 1024**3,
    "T": 1024**4,
    "TB": 1024**4,
}

_DISPLAY_UNITS = ("KB", "MB", "GB", "TB", "PB")


def parse_size(text: str) -> Optional[int]:
    """Convert a size string to a byte count, or None when it is not valid."""
    match = _SIZE_RE.match(text.strip().upper())
    if not match:
        return None

    number, unit = match.groups()
    multiplier = _MULTIPLIERS.get(unit)
    if multiplier is None:
        return None

    return int(float(number) * multiplier)


def format_size(num_bytes: int) -> str:
    """Render a byte count for log lines, e.g. ``"1.5 MB"``.

    Uses decimal units like a file manager does; this is display only and
    is never parsed back.
    """
    if num_bytes < 1000:
        return "1 byte" if num_bytes == 1 else f"{num_bytes} bytes"

    value = num_bytes / 1000
    index = 0
    while round(value, 1) >= 1000 and index < len(_DISPLAY_UNITS) - 1:
        value /= 1000
        index += 1

    rendered = f"{value:.1f}".removesuffix(".0")
    return f"{rendered} {_DISPLAY_UNITS[index]}"
