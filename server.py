#!/usr/bin/env python3
"""
Outlook Attachments MCP Server

Turns Outlook attachment content into something a model can read within
the MCP response limit.

Tools:
- decode_attachment: Base64 in, parsed text/sheets/document text out
- cleanup_attachment_files: Sweep old spilled files from the work directory
- attachment_config_info: Where spilled files go and the active limits

Documentation is provided via MCP Resources, not a tool.

Architecture:
- extractors/: Pure functions (classification, sheet shaping, sizes)
- adapters/: Thin openpyxl / markitdown wrappers
- tools/: Tool implementations (business logic)
- workspace/: Work directory and spill management
- server.py: Thin MCP wrappers (this file)
"""

import os
import signal
from typing import Any

from mcp.server.fastmcp import FastMCP

from config import AttachmentConfig, WORK_DIR_ENV
from logging_config import configure_logging
from tools import AttachmentContentResolver
from workspace import cleanup_old_files, get_config_info

# Environment is read once; every tool call shares this config
CONFIG = AttachmentConfig.from_env()
configure_logging(CONFIG.log_level)

_resolver = AttachmentContentResolver(CONFIG)

# Initialize MCP server
mcp = FastMCP("Outlook Attachments")


# ============================================================================
# TOOLS (thin wrappers)
# ============================================================================

# decode_attachment returns the exact JSON the resolver measured against the
# limit; structured output would send a second copy alongside the text.
@mcp.tool(structured_output=False)
async def decode_attachment(
    content_bytes: str,
    content_type: str = "",
    filename: str = "",
    decode_content: bool = True,
) -> str:
    """
    Decode attachment content for reading.

    Text is returned as text, spreadsheets as per-sheet rows, and PDF/Word/
    PowerPoint files as extracted text. Anything else gets a size summary.
    If the response would exceed the MCP size limit, the attachment is saved
    to the work directory and the response carries the file path instead.

    Args:
        content_bytes: Attachment content as Base64 (contentBytes from Graph).
            An empty string is a zero-byte attachment.
        content_type: Declared MIME type, e.g. "application/pdf" (may be empty)
        filename: Attachment filename; its extension helps classification
        decode_content: False returns the raw Base64 without parsing

    Returns:
        JSON object with:
        decoded_content_type: text, spreadsheet, office-document, or binary
        content: Parsed content (shape depends on type)
        content_bytes: Original Base64 when kept for raw access
        encoding: utf8, utf8_lossy, parsed, base64, base64_fallback, ...
        note: What happened (truncation, parse failures, spill location)
        content_saved_to_file / file_output: Present when spilled to disk
    """
    response = await _resolver.resolve(
        content_bytes, content_type or None, filename or None, decode_requested=decode_content,
    )
    return response.to_json()


@mcp.tool()
def cleanup_attachment_files(max_age_hours: float = CONFIG.retention_hours) -> dict[str, Any]:
    """
    Delete spilled attachment files older than max_age_hours.

    Only files this server wrote (prefixed "outlook_") are touched.

    Args:
        max_age_hours: Age threshold in hours (default 24)

    Returns:
        cleaned: Number of files deleted
        work_directory: Directory that was swept
    """
    if max_age_hours < 0:
        return {"error": True, "kind": "invalid_input",
                "message": "max_age_hours must be zero or positive"}
    return cleanup_old_files(max_age_hours, CONFIG)


@mcp.tool()
def attachment_config_info() -> dict[str, Any]:
    """
    Report where oversized attachments are saved and the active limits.

    Returns:
        work_directory: Resolved directory for spilled files
        environment_variable: Variable that overrides it
        max_response_size: MCP response ceiling in bytes
    """
    info = get_config_info(CONFIG)
    info["limits"] = {
        "max_sheets": CONFIG.max_sheets,
        "max_rows_per_sheet": CONFIG.max_rows_per_sheet,
        "max_text_length": CONFIG.max_text_length,
    }
    return info


# ============================================================================
# RESOURCES — Self-documenting MCP capabilities
# ============================================================================

@mcp.resource("outlook://docs/overview")
def docs_overview() -> str:
    """Overview of the Outlook attachments MCP server."""
    return f"""# Outlook Attachments

Decodes Outlook attachment content into model-readable form.

## Tools

| Tool | Purpose | Writes files? |
|------|---------|---------------|
| `decode_attachment` | Base64 → text, sheet rows, or document text | Only when oversized |
| `cleanup_attachment_files` | Remove old spilled files | Deletes |
| `attachment_config_info` | Show work directory and limits | No |

## What you get back

| Attachment | decoded_content_type | content |
|------------|----------------------|---------|
| .txt .csv .json .md .html ... | `text` | Decoded text |
| .xlsx .xlsm | `spreadsheet` | First {CONFIG.max_sheets} sheets, {CONFIG.max_rows_per_sheet} rows each |
| .pdf .docx .pptx | `office-document` | Extracted text, {CONFIG.max_text_length:,} chars max |
| anything else | `binary` | Size summary; Base64 in content_bytes |

Parse failures don't raise: `content.type` becomes e.g. `spreadsheet-error`
with a note, and the raw Base64 is still returned.

## Resources

- `outlook://docs/overview` — This overview
- `outlook://docs/workspace` — Oversized responses and the work directory
"""


@mcp.resource("outlook://docs/workspace")
def docs_workspace() -> str:
    """How oversized attachments are written to disk."""
    return f"""# Work Directory

MCP rejects responses over {CONFIG.max_response_bytes:,} bytes. When a decoded
attachment would exceed that, the original file is written to disk and the
response carries its path instead:

```
content_saved_to_file: true
file_output:
  file_path: /tmp/outlook_Q4-Report_1737801600000_k3x9qa.xlsx
  size: 3932160
```

Parsed content is still included if it fits in half the limit on its own;
otherwise `parsed_content_truncated` is set.

## Location

Set `{WORK_DIR_ENV}` to choose the directory.
Unset, unwritable, or uncreatable → the system temp directory.

## Naming

`outlook_<name>_<timestamp_ms>_<random><ext>`. Names never collide, and the
`outlook_` prefix is how `cleanup_attachment_files` finds them.

## Retention

Nothing is deleted automatically. Call `cleanup_attachment_files` to remove
files older than {CONFIG.retention_hours:g} hours.
"""


# ============================================================================
# SERVER ENTRY POINT
# ============================================================================

def _shutdown_handler(signum: int, frame: object) -> None:
    """Handle termination signals by exiting immediately.

    os._exit() is required because sys.exit() raises SystemExit,
    which asyncio's event loop catches and ignores.
    """
    os._exit(0)


def main() -> None:
    signal.signal(signal.SIGTERM, _shutdown_handler)
    signal.signal(signal.SIGINT, _shutdown_handler)
    mcp.run()


if __name__ == "__main__":
    main()
