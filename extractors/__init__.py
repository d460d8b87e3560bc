"""
Extractors — Pure functions for classification and content shaping.

No MCP awareness, no file I/O. Just transform input → output.
Easily testable with fixtures.
"""

from .classify import classify, normalize_mime, file_extension, looks_like_text
from .sheets import extract_sheet, extract_spreadsheet, normalize_cell
from .text import format_file_size, truncate_text, base64_decoded_length, decode_base64

__all__ = [
    "classify",
    "normalize_mime",
    "file_extension",
    "looks_like_text",
    "extract_sheet",
    "extract_spreadsheet",
    "normalize_cell",
    "format_file_size",
    "truncate_text",
    "base64_decoded_length",
    "decode_base64",
]
