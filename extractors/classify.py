"""
Content Classifier — Pure function assigning an attachment to a category.

Ordered rules, first match wins:
    spreadsheet MIME → spreadsheet extension →
    office MIME → office extension →
    text MIME prefix → text extension →
    content sniff (only when no MIME type) → binary

Declared MIME outranks the filename, which outranks sniffing.
Never raises: missing information falls through to binary.
"""

from pathlib import PurePath

from models import ContentCategory


SPREADSHEET_MIME_TYPES = frozenset({
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # xlsx
    "application/vnd.ms-excel",  # xls
    "application/vnd.openxmlformats-officedocument.spreadsheetml.template",  # xltx
    "application/vnd.ms-excel.sheet.macroenabled.12",  # xlsm
    "application/vnd.ms-excel.template.macroenabled.12",  # xltm
    "application/vnd.ms-excel.addin.macroenabled.12",  # xlam
    "application/vnd.ms-excel.sheet.binary.macroenabled.12",  # xlsb
})

SPREADSHEET_EXTENSIONS = frozenset({
    ".xlsx", ".xls", ".xlsm", ".xltx", ".xltm", ".xlam", ".xlsb",
})

OFFICE_MIME_TYPES = frozenset({
    "application/pdf",
    # Word
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",  # docx
    "application/msword",  # doc
    "application/vnd.openxmlformats-officedocument.wordprocessingml.template",  # dotx
    "application/vnd.ms-word.document.macroenabled.12",  # docm
    "application/vnd.ms-word.template.macroenabled.12",  # dotm
    # PowerPoint
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",  # pptx
    "application/vnd.ms-powerpoint",  # ppt
    "application/vnd.openxmlformats-officedocument.presentationml.template",  # potx
    "application/vnd.openxmlformats-officedocument.presentationml.slideshow",  # ppsx
    "application/vnd.ms-powerpoint.addin.macroenabled.12",  # ppam
    "application/vnd.ms-powerpoint.presentation.macroenabled.12",  # pptm
    "application/vnd.ms-powerpoint.template.macroenabled.12",  # potm
    "application/vnd.ms-powerpoint.slideshow.macroenabled.12",  # ppsm
    # OpenDocument
    "application/vnd.oasis.opendocument.text",
    "application/vnd.oasis.opendocument.presentation",
    "application/vnd.oasis.opendocument.spreadsheet",
    # RTF
    "application/rtf",
    "text/rtf",
})

OFFICE_EXTENSIONS = frozenset({
    ".pdf",
    ".doc", ".docx", ".docm", ".dotx", ".dotm",
    ".ppt", ".pptx", ".pptm", ".potx", ".potm", ".ppsx", ".ppsm", ".ppam",
    ".odt", ".odp", ".ods",
    ".rtf",
})

TEXT_MIME_PREFIXES = (
    "text/",
    "application/json",
    "application/xml",
    "application/javascript",
    "application/typescript",
    "application/x-python",
    "application/x-sh",
    "application/sql",
)

TEXT_EXTENSIONS = frozenset({
    ".txt", ".md", ".csv", ".log", ".ini", ".cfg", ".conf",
    ".html", ".htm", ".xml", ".json", ".js", ".ts", ".py",
    ".sh", ".bash", ".sql", ".css", ".scss", ".less",
    ".yaml", ".yml", ".toml", ".properties", ".env",
})

# How much of the decoded payload the sniffer looks at
SNIFF_BYTES = 200

_SNIFF_MARKERS = ("<!doctype html", "<html", "<?xml")


def classify(
    mime_type: str | None,
    filename: str | None,
    sample: bytes | None = None,
) -> ContentCategory:
    """
    Assign a content category from declared type, filename and content.

    Args:
        mime_type: Declared MIME type (may be empty or None)
        filename: Declared filename (may be empty or None)
        sample: Leading decoded bytes, used only when mime_type is empty

    Returns:
        ContentCategory — always, never raises

    Examples:
        classify("text/plain", "notes.txt") -> ContentCategory.TEXT
        classify("", "report.xlsx") -> ContentCategory.SPREADSHEET
        classify(None, None, b'{"a": 1}') -> ContentCategory.TEXT
    """
    mime = normalize_mime(mime_type)
    ext = file_extension(filename)

    if mime in SPREADSHEET_MIME_TYPES:
        return ContentCategory.SPREADSHEET
    if ext in SPREADSHEET_EXTENSIONS:
        return ContentCategory.SPREADSHEET
    if mime in OFFICE_MIME_TYPES:
        return ContentCategory.OFFICE_DOCUMENT
    if ext in OFFICE_EXTENSIONS:
        return ContentCategory.OFFICE_DOCUMENT
    if mime and mime.startswith(TEXT_MIME_PREFIXES):
        return ContentCategory.TEXT
    if ext in TEXT_EXTENSIONS:
        return ContentCategory.TEXT
    if not mime and sample and looks_like_text(sample):
        return ContentCategory.TEXT

    return ContentCategory.BINARY


def normalize_mime(mime_type: str | None) -> str:
    """Lowercase a MIME type and drop parameters ("; charset=...")."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def file_extension(filename: str | None) -> str:
    """Lowercased extension including the dot, or "" when there is none."""
    if not filename:
        return ""
    path = PurePath(filename)
    # Dotfiles like ".env" have no suffix to pathlib
    if not path.suffix and path.name.startswith("."):
        return path.name.lower()
    return path.suffix.lower()


def looks_like_text(sample: bytes) -> bool:
    """
    Sniff the first SNIFF_BYTES for HTML, XML or JSON leading markers.

    Undecodable bytes are ignored rather than treated as failure.
    """
    head = sample[:SNIFF_BYTES].decode("utf-8", errors="ignore")
    lowered = head.lower()
    if any(marker in lowered for marker in _SNIFF_MARKERS):
        return True
    stripped = head.lstrip("\ufeff \t\r\n")
    return stripped.startswith(("{", "["))
