"""
Attachment content resolution — decode, classify, parse, fit to the limit.

One call per attachment. The resolver owns no state beyond its config:
raw content, parse results and the envelope are all request-scoped.

Nothing raises past resolve(). Decode errors, parse errors and disk errors
all come back folded into a well-formed envelope or spill response.
"""

import json
import logging
from dataclasses import replace

from adapters.office import parse_office_document
from adapters.spreadsheet import parse_spreadsheet
from config import AttachmentConfig
from extractors.classify import SNIFF_BYTES, classify
from extractors.text import base64_decoded_length, decode_base64, format_file_size
from models import (
    AttachmentError,
    AttachmentResponse,
    BinarySummary,
    ContentCategory,
    ErrorKind,
    InlineContent,
    ParsedResult,
    ParseFailure,
    ResponseEnvelope,
    SpilledContent,
    SpillRecord,
    TextContent,
)
from workspace import persist_if_oversized, should_spill

log = logging.getLogger(__name__)


class AttachmentContentResolver:
    """
    Turns one attachment's Base64 content into a response that fits MCP.

    Construct once with an AttachmentConfig; every ceiling and the work
    directory come from it.
    """

    def __init__(self, config: AttachmentConfig | None = None):
        self.config = config or AttachmentConfig()

    async def resolve(
        self,
        content_bytes: str,
        mime_type: str | None,
        filename: str | None,
        decode_requested: bool = True,
        include_raw: bool = True,
        reserved_bytes: int = 0,
    ) -> AttachmentResponse:
        """
        Resolve attachment content into an envelope or a spill response.

        Args:
            content_bytes: Attachment content as Base64 text
            mime_type: Declared content type (may be empty)
            filename: Declared filename (may be empty)
            decode_requested: False skips classification and returns raw Base64
            include_raw: Keep Base64 alongside parsed content for raw access
            reserved_bytes: Room the caller needs for fields it merges into the response

        Returns:
            ResponseEnvelope if it fits the transport limit, else SpilledContent
            (or a trimmed envelope flagged mcp_limit_exceeded if the disk write failed)
        """
        try:
            envelope = await self._build_envelope(
                content_bytes, mime_type, filename, decode_requested, include_raw
            )
        except Exception as e:
            log.exception(f"Unexpected failure resolving {filename}")
            envelope = ResponseEnvelope(
                category=None,
                filename=filename,
                mime_type=mime_type,
                size=None,
                encoding="base64_fallback",
                content_bytes=content_bytes,
                note=f"[Failed to decode content: {e}]",
                decoding_error=str(e),
            )

        limit = self.config.max_response_bytes - reserved_bytes
        return self._fit_to_limit(envelope, content_bytes, limit)

    async def _build_envelope(
        self,
        content_bytes: str,
        mime_type: str | None,
        filename: str | None,
        decode_requested: bool,
        include_raw: bool,
    ) -> ResponseEnvelope:
        if not decode_requested:
            return ResponseEnvelope(
                category=ContentCategory.BINARY,
                filename=filename,
                mime_type=mime_type,
                size=base64_decoded_length(content_bytes),
                encoding="base64",
                content_bytes=content_bytes,
                note="Raw Base64 content (set decode_content to true to decode)",
            )

        try:
            data = decode_base64(content_bytes)
        except ValueError as e:
            log.warning(f"Base64 decode failed for {filename}: {e}")
            return ResponseEnvelope(
                category=None,
                filename=filename,
                mime_type=mime_type,
                size=None,
                encoding="base64_fallback",
                content_bytes=content_bytes,
                note=f"[Failed to decode content: {e}]",
                decoding_error=f"Invalid Base64 content: {e}",
            )

        category = classify(mime_type, filename, data[:SNIFF_BYTES])
        log.debug(f"Classified {filename or '(unnamed)'} ({mime_type or 'no type'}) as {category.value}")

        parsed: ParsedResult
        keep_raw = include_raw
        match category:
            case ContentCategory.TEXT:
                parsed = self._decode_text(data)
                # Text is inlined; raw only when too large to display
                keep_raw = parsed.encoding == "base64_preserved"
                encoding = parsed.encoding
                note = parsed.note
            case ContentCategory.SPREADSHEET:
                parsed = parse_spreadsheet(
                    data,
                    filename,
                    max_sheets=self.config.max_sheets,
                    max_rows_per_sheet=self.config.max_rows_per_sheet,
                )
                encoding = "parsed"
                note = _parsed_note("Spreadsheet parsed and data extracted.", parsed, keep_raw)
            case ContentCategory.OFFICE_DOCUMENT:
                parsed = await parse_office_document(
                    data,
                    filename,
                    max_text_length=self.config.max_text_length,
                    mime_type=mime_type,
                )
                encoding = "parsed"
                note = _parsed_note("Office document parsed and text extracted.", parsed, keep_raw)
            case ContentCategory.BINARY:
                parsed = BinarySummary(
                    summary=f"[Binary file: {mime_type or 'unknown type'}, {format_file_size(len(data))}]",
                    size=len(data),
                    mime_type=mime_type,
                )
                encoding = "base64" if keep_raw else "summary"
                note = (
                    "Binary file preserved as Base64, decode content_bytes if needed"
                    if keep_raw else None
                )

        return ResponseEnvelope(
            category=category,
            filename=filename,
            mime_type=mime_type,
            size=len(data),
            encoding=encoding,
            parsed=parsed,
            content_bytes=content_bytes if keep_raw else None,
            note=note,
        )

    def _decode_text(self, data: bytes) -> TextContent:
        """Decode UTF-8, replacing bad bytes; oversized text keeps only a placeholder."""
        if len(data) > self.config.max_text_display_bytes:
            return TextContent(
                text=f"[Text file too large to display: {format_file_size(len(data))}]",
                size=len(data),
                encoding="base64_preserved",
                note="File exceeds display limit, use content_bytes for full content",
            )
        try:
            return TextContent(text=data.decode("utf-8"), size=len(data))
        except UnicodeDecodeError as e:
            return TextContent(
                text=data.decode("utf-8", errors="replace"),
                size=len(data),
                encoding="utf8_lossy",
                note=f"Content is not valid UTF-8 ({e.reason}); undecodable bytes were replaced",
            )

    def _fit_to_limit(
        self, envelope: ResponseEnvelope, content_bytes: str, max_size: int,
    ) -> AttachmentResponse:
        """Hand the serialized envelope to the workspace; reshape if it spilled."""
        serialized = envelope.to_json()
        try:
            outcome = persist_if_oversized(
                content_bytes,
                envelope.filename,
                "base64",
                max_size,
                measure=serialized,
                mime_type=envelope.mime_type,
                config=self.config,
            )
        except AttachmentError as e:
            log.error(f"Could not save oversized attachment {envelope.filename}: {e.message}")
            return self._limit_exceeded(envelope, serialized, e)
        except Exception as e:
            log.exception(f"Unexpected failure saving {envelope.filename}")
            return self._limit_exceeded(
                envelope, serialized, AttachmentError(ErrorKind.UNKNOWN, str(e))
            )

        if isinstance(outcome, InlineContent):
            return envelope
        return self._spilled(envelope, outcome)

    def _spilled(self, envelope: ResponseEnvelope, record: SpillRecord) -> SpilledContent:
        """Replace the envelope with a spill response, keeping parsed content if it fits half the limit."""
        note = (
            f"Attachment content saved to file: {record.file_path}. "
            "Use the file path to access the full content."
        )
        parsed = envelope.parsed
        parsed_truncated = False
        half_limit = self.config.max_response_bytes // 2
        if parsed is not None and should_spill(_json(parsed), half_limit):
            parsed = None
            parsed_truncated = True
            note += " Parsed content also truncated due to size."

        return SpilledContent(
            record=record,
            category=envelope.category,
            filename=envelope.filename,
            mime_type=envelope.mime_type,
            size=envelope.size,
            encoding=envelope.encoding,
            parsed=parsed,
            parsed_content_truncated=parsed_truncated,
            note=note,
        )

    def _limit_exceeded(
        self,
        envelope: ResponseEnvelope,
        serialized: str,
        error: AttachmentError,
    ) -> ResponseEnvelope:
        """Strip the payload and flag the overflow when the disk write failed."""
        response_size = len(serialized.encode("utf-8"))
        return replace(
            envelope,
            parsed=None,
            content_bytes=None,
            mcp_limit_exceeded=True,
            content_truncated=True,
            content_size=response_size,
            file_save_error=error.message,
            note=(
                f"Response size ({format_file_size(response_size)}) exceeds MCP limit. "
                f"File save failed: {error.message}"
            ),
        )


async def resolve_attachment_content(
    content_bytes: str,
    mime_type: str | None,
    filename: str | None,
    decode_requested: bool = True,
    include_raw: bool = True,
    config: AttachmentConfig | None = None,
) -> AttachmentResponse:
    """Resolve one attachment with a config read from the environment."""
    resolver = AttachmentContentResolver(config or AttachmentConfig.from_env())
    return await resolver.resolve(content_bytes, mime_type, filename, decode_requested, include_raw)


def _parsed_note(summary: str, parsed: ParsedResult, keep_raw: bool) -> str:
    if isinstance(parsed, ParseFailure):
        summary = f"{parsed.note}."
    if keep_raw:
        return f"{summary} Use content_bytes for raw file access."
    return summary


def _json(parsed: ParsedResult) -> str:
    return json.dumps(parsed.to_dict(), indent=2, default=str)
