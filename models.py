"""
Type definitions for the Outlook attachment pipeline.

Dataclasses defining the contracts between layers:
- Adapters parse raw bytes into these structures
- Extractors are pure functions over them
- Tools assemble the envelope and hand it to the workspace

Every result type serializes via to_dict() for the MCP response.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ============================================================================
# ERROR TYPES
# ============================================================================

class ErrorKind(Enum):
    """Categories of errors for consistent handling."""
    INVALID_INPUT = "invalid_input"          # Bad parameters
    NOT_FOUND = "not_found"                  # Attachment doesn't exist
    PERMISSION_DENIED = "permission_denied"  # No access to mailbox
    RATE_LIMITED = "rate_limited"            # Graph throttling
    DECODE_FAILED = "decode_failed"          # Malformed Base64 / encoding
    PARSE_FAILED = "parse_failed"            # Corrupt or unsupported document
    PERSISTENCE_FAILED = "persistence_failed"  # Work directory unwritable, disk full
    UNKNOWN = "unknown"                      # Unexpected error


class AttachmentError(Exception):
    """
    Structured error for consistent handling across layers.

    Adapters and the workspace raise these.
    Tools catch and fold them into the response.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for MCP response."""
        return {
            "error": True,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


# ============================================================================
# CLASSIFICATION
# ============================================================================

class ContentCategory(Enum):
    """What an attachment is, for routing to a parser."""
    TEXT = "text"
    SPREADSHEET = "spreadsheet"
    OFFICE_DOCUMENT = "office-document"
    BINARY = "binary"


# ============================================================================
# PARSED RESULTS
# ============================================================================

# Cell values from openpyxl are strings, numbers, booleans, dates, or None
CellValue = str | int | float | bool | None


@dataclass
class TextContent:
    """Decoded text attachment."""
    text: str
    size: int                # Decoded byte size
    encoding: str = "utf8"   # utf8, utf8_lossy, base64_preserved
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": "text",
            "text": self.text,
            "size": self.size,
            "encoding": self.encoding,
        }
        if self.note:
            result["note"] = self.note
        return result


@dataclass
class SheetContent:
    """A single sheet, rows capped at max_rows_per_sheet."""
    name: str
    rows: int                 # Total rows in the sheet's used range
    columns: int
    range: str                # e.g. "A1:D50"
    data: list[list[CellValue]] = field(default_factory=list)
    truncated: bool = False
    note: str | None = None

    @property
    def displayed_rows(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "dimensions": {
                "rows": self.rows,
                "columns": self.columns,
                "range": self.range,
            },
            "data": self.data,
            "truncated": self.truncated,
            "displayed_rows": self.displayed_rows,
        }
        if self.note:
            result["note"] = self.note
        return result


@dataclass
class SpreadsheetContent:
    """Parsed workbook: sheets in file order, capped at max_sheets."""
    filename: str | None
    sheets: list[SheetContent]
    total_sheets: int
    sheet_names: list[str]
    max_sheets: int
    max_rows_per_sheet: int
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        summary: dict[str, Any] = {
            "total_sheets": self.total_sheets,
            "sheet_names": self.sheet_names,
            "max_sheets": self.max_sheets,
            "max_rows_per_sheet": self.max_rows_per_sheet,
        }
        if self.note:
            summary["note"] = self.note
        return {
            "type": "spreadsheet",
            "filename": self.filename,
            "sheets": [s.to_dict() for s in self.sheets],
            "summary": summary,
        }


@dataclass
class DocumentContent:
    """Text extracted from a PDF, Word, PowerPoint or similar document."""
    filename: str | None
    text: str
    extracted_length: int     # Characters before truncation
    truncated: bool
    original_size: int        # Document byte size
    max_text_length: int
    note: str | None = None

    @property
    def truncated_length(self) -> int | None:
        return self.max_text_length if self.truncated else None

    def to_dict(self) -> dict[str, Any]:
        content: dict[str, Any] = {
            "text": self.text,
            "extracted_length": self.extracted_length,
            "truncated": self.truncated,
        }
        if self.truncated:
            content["truncated_length"] = self.truncated_length
        if self.note:
            content["note"] = self.note
        return {
            "type": "office-document",
            "filename": self.filename,
            "content": content,
            "metadata": {
                "original_size": self.original_size,
                "text_length": self.extracted_length,
                "has_content": self.extracted_length > 0,
                "max_text_length": self.max_text_length,
            },
        }


@dataclass
class BinarySummary:
    """Size summary for content we don't parse."""
    summary: str
    size: int
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "binary",
            "summary": self.summary,
            "size": self.size,
            "mime_type": self.mime_type,
        }


@dataclass
class ParseFailure:
    """
    Typed error result from a parser.

    Parsers return this instead of raising so the request still completes.
    """
    category: ContentCategory
    error: str
    note: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": f"{self.category.value}-error",
            "error": self.error,
            "note": self.note,
        }


ParsedResult = TextContent | SpreadsheetContent | DocumentContent | BinarySummary | ParseFailure


# ============================================================================
# RESPONSE TYPES
# ============================================================================

@dataclass
class ResponseEnvelope:
    """
    One attachment's decoded content, ready for the MCP response.

    content_bytes carries the original Base64 for raw access. It is dropped
    whenever keeping it would break the transport limit.
    """
    category: ContentCategory | None
    filename: str | None
    mime_type: str | None
    size: int | None
    encoding: str
    parsed: ParsedResult | None = None
    content_bytes: str | None = None
    note: str | None = None
    decoding_error: str | None = None

    # Set when the response was too large and could not be written to disk
    mcp_limit_exceeded: bool = False
    content_truncated: bool = False
    content_size: int | None = None
    file_save_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "decoded_content_type": self.category.value if self.category else None,
            "filename": self.filename,
            "mime_type": self.mime_type,
            "size": self.size,
            "encoding": self.encoding,
        }
        if self.parsed is not None:
            result["content"] = self.parsed.to_dict()
        if self.content_bytes is not None:
            result["content_bytes"] = self.content_bytes
        if self.note:
            result["note"] = self.note
        if self.decoding_error:
            result["decoding_error"] = self.decoding_error
        if self.mcp_limit_exceeded:
            result["mcp_limit_exceeded"] = True
            result["content_truncated"] = self.content_truncated
            result["content_size"] = self.content_size
            result["file_save_error"] = self.file_save_error
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)


@dataclass
class SpillRecord:
    """A file written to the work directory in place of inline content."""
    file_path: str
    filename: str              # Generated unique name
    size: int                  # Bytes on disk
    original_filename: str | None
    created_at: str            # ISO 8601
    original_size: int | None = None
    mime_type: str | None = None
    encoding: str = "base64"
    work_directory: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "filename": self.filename,
            "original_filename": self.original_filename,
            "size": self.size,
            "original_size": self.original_size,
            "mime_type": self.mime_type,
            "encoding": self.encoding,
            "created_at": self.created_at,
            "work_directory": self.work_directory,
        }


@dataclass
class InlineContent:
    """Content that fits the transport limit, returned as-is."""
    content: str | bytes
    size: int
    encoding: str

    def to_dict(self) -> dict[str, Any]:
        return {"saved_to_file": False, "size": self.size, "encoding": self.encoding}


@dataclass
class SpilledContent:
    """
    Response returned when the envelope exceeded the transport limit.

    The attachment itself is on disk (record). Parsed content rides along
    only when it fits in half the limit on its own.
    """
    record: SpillRecord
    category: ContentCategory | None
    filename: str | None
    mime_type: str | None
    size: int | None
    encoding: str
    parsed: ParsedResult | None = None
    parsed_content_truncated: bool = False
    note: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "decoded_content_type": self.category.value if self.category else None,
            "filename": self.filename,
            "mime_type": self.mime_type,
            "size": self.size,
            "encoding": self.encoding,
            "content_saved_to_file": True,
            "file_output": self.record.to_dict(),
            "note": self.note,
        }
        if self.parsed is not None:
            result["content"] = self.parsed.to_dict()
        if self.parsed_content_truncated:
            result["parsed_content_truncated"] = True
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)


AttachmentResponse = ResponseEnvelope | SpilledContent
