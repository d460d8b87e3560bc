"""
Office document adapter — PDF, Word, PowerPoint text via markitdown.

markitdown is synchronous and file-based. It is wrapped once here:
bytes go to a temp file, conversion runs in a worker thread, and callers
get a single awaitable. Nothing else in the pipeline knows about threads.

Failures (corrupt, encrypted, unsupported sub-format) come back as
ParseFailure, never as exceptions.
"""

import asyncio
import logging
import mimetypes
import tempfile
from pathlib import Path

from markitdown import MarkItDown
from markitdown.converters import DocxConverter, PdfConverter, PptxConverter

from config import DEFAULT_MAX_TEXT_LENGTH
from extractors.classify import file_extension, normalize_mime
from extractors.text import truncate_text
from logging_config import log_parse
from models import ContentCategory, DocumentContent, ParseFailure

log = logging.getLogger(__name__)

UNSUPPORTED_NOTE = "File may be corrupted, password-protected, or in an unsupported format"

# MIME types mimetypes.guess_extension doesn't know everywhere
_EXTENSION_FOR_MIME = {
    "application/pdf": ".pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": ".pptx",
    "application/msword": ".doc",
    "application/vnd.ms-powerpoint": ".ppt",
    "application/rtf": ".rtf",
    "text/rtf": ".rtf",
}


async def parse_office_document(
    data: bytes,
    filename: str | None = None,
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
    mime_type: str | None = None,
) -> DocumentContent | ParseFailure:
    """
    Extract flowing text from a document, truncated to max_text_length.

    Args:
        data: Raw document bytes
        filename: Original filename (its extension picks the converter)
        max_text_length: Character ceiling for the returned text
        mime_type: Declared MIME type, used when the filename has no extension

    Returns:
        DocumentContent with truncation metadata, or ParseFailure
    """
    log_parse("office-document", filename, len(data))
    suffix = _suffix_for(filename, mime_type)

    try:
        extracted = await asyncio.to_thread(_extract_with_markitdown, data, suffix)
    except Exception as e:
        log.warning(f"Office parse failed for {filename}: {e}")
        return ParseFailure(
            category=ContentCategory.OFFICE_DOCUMENT,
            error=f"Failed to parse office document: {e}",
            note=UNSUPPORTED_NOTE,
        )

    text, truncated = truncate_text(extracted, max_text_length)
    note = None
    if truncated:
        note = f"Text truncated to {max_text_length} characters (total: {len(extracted)})"

    log.debug(f"Extracted {len(extracted)} chars from {filename}")
    return DocumentContent(
        filename=filename,
        text=text,
        extracted_length=len(extracted),
        truncated=truncated,
        original_size=len(data),
        max_text_length=max_text_length,
        note=note,
    )


def _extract_with_markitdown(data: bytes, suffix: str) -> str:
    """
    Extract document content using markitdown.

    Writes to temp file (markitdown picks its converter from the path), extracts, cleans up.
    """
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp.write(data)
        tmp_path = Path(tmp.name)

    try:
        result = _markitdown().convert_local(str(tmp_path))
        return result.text_content or ""
    finally:
        tmp_path.unlink(missing_ok=True)


def _suffix_for(filename: str | None, mime_type: str | None) -> str:
    """Temp file suffix: filename extension first, then the declared MIME type."""
    ext = file_extension(filename)
    if ext:
        return ext
    mime = normalize_mime(mime_type)
    return _EXTENSION_FOR_MIME.get(mime) or mimetypes.guess_extension(mime or "") or ""


def _markitdown() -> MarkItDown:
    """
    MarkItDown limited to PDF, Word and PowerPoint.

    The built-in set includes a plain-text fallback that happily "converts"
    a corrupt .docx into its raw bytes. With only these converters, an
    unreadable or unsupported file raises instead.
    """
    md = MarkItDown(enable_builtins=False)
    for converter in (DocxConverter(), PdfConverter(), PptxConverter()):
        md.register_converter(converter)
    return md
