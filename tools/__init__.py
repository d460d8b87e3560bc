"""
Tools — MCP tool implementations.

Each tool has its own module with the implementation logic.
server.py provides thin @mcp.tool() wrappers that call into these.

- attachment: decode, classify, parse and size-guard attachment content
- download: fetch a message attachment through an injected mail client
"""

from .attachment import AttachmentContentResolver, resolve_attachment_content
from .download import AttachmentClient, do_download_attachment

__all__ = [
    "AttachmentContentResolver", "resolve_attachment_content",
    "AttachmentClient", "do_download_attachment",
]
