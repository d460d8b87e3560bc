"""
Download attachment — fetch one message attachment and resolve its content.

The mail API is injected as an AttachmentClient so this module never knows
about auth or HTTP. Graph returns three attachment kinds:

- fileAttachment: contentBytes holds Base64, routed through the resolver
- itemAttachment: an embedded message/event, returned as JSON
- referenceAttachment: a link to OneDrive/SharePoint, returned as metadata

Upstream errors are not retried or swallowed; they propagate to the caller.
"""

import json
import logging
from typing import Any, Protocol

from extractors.text import format_file_size
from models import AttachmentError, ErrorKind
from tools.attachment import AttachmentContentResolver

log = logging.getLogger(__name__)

FILE_ATTACHMENT = "#microsoft.graph.fileAttachment"
ITEM_ATTACHMENT = "#microsoft.graph.itemAttachment"
REFERENCE_ATTACHMENT = "#microsoft.graph.referenceAttachment"

METADATA_FIELDS = "id,name,contentType,size,isInline,lastModifiedDateTime,@odata.type"
CONTENT_FIELDS = METADATA_FIELDS.replace(",@odata.type", ",contentBytes,@odata.type")

_REFERENCE_FIELDS = {
    "sourceUrl": "source_url",
    "providerType": "provider_type",
    "thumbnailUrl": "thumbnail_url",
    "previewUrl": "preview_url",
    "permission": "permission",
    "isFolder": "is_folder",
}


class AttachmentClient(Protocol):
    """Anything that can fetch a message attachment as Graph-shaped JSON."""

    async def get_attachment(
        self,
        message_id: str,
        attachment_id: str,
        *,
        select: str | None = None,
        expand: str | None = None,
    ) -> dict[str, Any]: ...


async def do_download_attachment(
    client: AttachmentClient,
    message_id: str,
    attachment_id: str,
    include_content: bool = False,
    decode_content: bool = True,
    resolver: AttachmentContentResolver | None = None,
) -> dict[str, Any]:
    """
    Fetch attachment metadata and, optionally, its content.

    Args:
        client: Upstream mail API
        message_id: Message the attachment belongs to
        attachment_id: Attachment to fetch
        include_content: Download the content, not just metadata
        decode_content: Decode and parse file content (False returns raw Base64)
        resolver: Content resolver; a default-config one if omitted

    Returns:
        Attachment info dict. Content fields depend on the attachment kind.
        Validation failures return an invalid_input error dict.
    """
    if not message_id:
        return AttachmentError(
            ErrorKind.INVALID_INPUT, "message_id: Parameter is required"
        ).to_dict()
    if not attachment_id:
        return AttachmentError(
            ErrorKind.INVALID_INPUT, "attachment_id: Parameter is required"
        ).to_dict()

    metadata = await client.get_attachment(message_id, attachment_id, select=METADATA_FIELDS)
    kind = metadata.get("@odata.type")
    log.debug(f"Attachment {attachment_id}: type={kind}, size={metadata.get('size')}")

    info: dict[str, Any] = {
        "id": metadata.get("id"),
        "name": metadata.get("name"),
        "content_type": metadata.get("contentType"),
        "size": metadata.get("size"),
        "size_formatted": format_file_size(metadata.get("size")),
        "is_inline": metadata.get("isInline") or False,
        "last_modified_date_time": metadata.get("lastModifiedDateTime"),
        "attachment_type": kind,
    }

    if not include_content:
        info["content_included"] = False
        info["content_error"] = "Content download not requested (set include_content to true to download)"
        return info

    resolver = resolver or AttachmentContentResolver()

    if kind == ITEM_ATTACHMENT:
        full = await client.get_attachment(message_id, attachment_id, expand="item")
        if full.get("item"):
            info["item_content"] = full["item"]
            info["content_included"] = True
            info["encoding"] = "json"
        else:
            info["content_included"] = False
            info["content_error"] = "No item content available for item attachment"
        return info

    if kind == REFERENCE_ATTACHMENT:
        full = await client.get_attachment(message_id, attachment_id)
        for graph_key, key in _REFERENCE_FIELDS.items():
            info[key] = full.get(graph_key)
        info["content_included"] = False
        info["content_error"] = "Reference attachment - use source_url to access the linked resource"
        return info

    if kind == FILE_ATTACHMENT:
        full = await client.get_attachment(message_id, attachment_id, select=CONTENT_FIELDS)
        missing_error = "No content bytes returned from API"
    else:
        log.info(f"Unknown attachment type {kind}, trying contentBytes")
        full = await client.get_attachment(message_id, attachment_id)
        missing_error = f"Unsupported attachment type: {kind}"

    content_bytes = full.get("contentBytes")
    if not content_bytes:
        info["content_included"] = False
        info["content_error"] = missing_error
        if kind != FILE_ATTACHMENT:
            info["debug_info"] = {"available_fields": sorted(full), "odata_type": kind}
        return info

    info["content_included"] = True
    # The metadata fields ride in the same response, so they count against the limit
    reserved = len(json.dumps(info, indent=2, default=str).encode("utf-8"))
    response = await resolver.resolve(
        content_bytes,
        metadata.get("contentType"),
        metadata.get("name"),
        decode_requested=decode_content,
        reserved_bytes=reserved,
    )
    resolved = response.to_dict()
    # Metadata from Graph wins over what the resolver echoes back
    for key in ("filename", "mime_type", "size"):
        resolved.pop(key, None)
    info.update(resolved)
    return info
