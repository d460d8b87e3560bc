"""
Text helpers — sizes, truncation, Base64 length arithmetic.

Pure functions shared by the parsers, the workspace and the tools.
"""

import base64
import math

ELLIPSIS = "..."

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int | float | None) -> str:
    """
    Human-readable size in binary units.

    Examples:
        format_file_size(0) -> "0 Bytes"
        format_file_size(1536) -> "1.5 KB"
        format_file_size(5 * 1024 * 1024) -> "5 MB"
    """
    if size is None or (isinstance(size, float) and math.isnan(size)):
        return "Unknown size"
    if size <= 0:
        return "0 Bytes"

    value = float(size)
    exponent = 0
    while value >= 1024 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    # 1.0 -> "1", 1.5 -> "1.5"
    return f"{round(value, 2):g} {_SIZE_UNITS[exponent]}"


def truncate_text(text: str, max_length: int) -> tuple[str, bool]:
    """
    Cut text to max_length characters, appending an ellipsis marker when cut.

    Returns:
        (display_text, truncated)
    """
    if len(text) <= max_length:
        return text, False
    return text[:max_length] + ELLIPSIS, True


def base64_decoded_length(encoded: str) -> int:
    """
    Decoded byte length of a Base64 string, without decoding it.

    Whitespace is ignored; padding is subtracted.
    """
    stripped = "".join(encoded.split())
    if not stripped:
        return 0
    padding = len(stripped) - len(stripped.rstrip("="))
    return max(len(stripped) * 3 // 4 - padding, 0)


def decode_base64(encoded: str) -> bytes:
    """
    Strict Base64 decode, ignoring embedded whitespace.

    Raises:
        binascii.Error (a ValueError) on characters outside the alphabet or bad padding
    """
    return base64.b64decode("".join(encoded.split()), validate=True)
