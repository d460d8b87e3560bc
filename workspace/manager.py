"""
Workspace Manager — Spills oversized attachment content to disk.

When a response would exceed the MCP transport limit, the attachment goes
to the work directory under a unique name and the caller gets a
SpillRecord pointing at it instead of the payload.

Files are named {prefix}_{base}_{timestamp_ms}_{random}{ext} so concurrent
requests never collide and the retention sweep can find its own files.
"""

import logging
import os
import re
import secrets
import string
import tempfile
import time
import unicodedata
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import Any, Literal

from config import AttachmentConfig, DEFAULT_FILE_PREFIX, MAX_RESPONSE_BYTES, WORK_DIR_ENV
from extractors.text import base64_decoded_length, decode_base64
from logging_config import log_cleanup, log_spill
from models import AttachmentError, ErrorKind, InlineContent, SpillRecord

log = logging.getLogger(__name__)

# Type aliases
Encoding = Literal["base64", "utf8", "text", "binary"]

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def sanitize_base_name(name: str, max_length: int = 50) -> str:
    """
    Convert a filename stem to a filesystem-safe token.

    - Normalizes unicode and drops non-ASCII
    - Replaces anything outside [A-Za-z0-9._-] with hyphens
    - Collapses multiple hyphens
    - Truncates to max_length

    Examples:
        "Q4 Report (final)" -> "Q4-Report-final"
        "Über Präsentation" -> "Uber-Prasentation"
        "../../etc/passwd" -> "passwd"
    """
    # Only the last path component; never let a name climb directories
    name = PurePath(name.replace("\\", "/")).name

    # Normalize unicode (é -> e, etc)
    name = unicodedata.normalize("NFKD", name)
    name = name.encode("ascii", "ignore").decode("ascii")

    name = re.sub(r"[^A-Za-z0-9._-]+", "-", name)
    name = re.sub(r"-+", "-", name)
    name = name.strip("-.")

    if len(name) > max_length:
        name = name[:max_length].rstrip("-.")

    return name or "file"


def generate_unique_filename(
    original_name: str | None,
    prefix: str = DEFAULT_FILE_PREFIX,
) -> str:
    """
    Build a collision-resistant filename for a spilled attachment.

    Example:
        generate_unique_filename("Q4 Report.xlsx")
        -> "outlook_Q4-Report_1737801600000_k3x9qa.xlsx"
    """
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(6))

    if not original_name:
        return f"{prefix}_file_{timestamp}_{suffix}"

    path = PurePath(original_name.replace("\\", "/"))
    ext = re.sub(r"[^A-Za-z0-9.]", "", path.suffix)
    base = sanitize_base_name(path.stem)
    return f"{prefix}_{base}_{timestamp}_{suffix}{ext}"


def resolve_work_directory(config: AttachmentConfig | None = None) -> Path:
    """
    Get the directory spilled files are written to.

    Uses config.work_dir, else MCP_OUTLOOK_WORK_DIR, else the platform temp
    directory. The chosen directory is created if missing; if that fails or
    it isn't writable, falls back to the temp directory.
    """
    if config is not None:
        candidate = config.work_dir
    else:
        env_dir = os.environ.get(WORK_DIR_ENV, "").strip()
        candidate = Path(env_dir).expanduser() if env_dir else None

    if candidate is None:
        return Path(tempfile.gettempdir())

    try:
        candidate.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        log.warning(f"Could not create work directory {candidate}, falling back to system temp: {e}")
        return Path(tempfile.gettempdir())

    if not os.access(candidate, os.W_OK):
        log.warning(f"Work directory {candidate} is not writable, falling back to system temp")
        return Path(tempfile.gettempdir())

    return candidate


def content_byte_length(content: str | bytes, encoding: Encoding = "base64") -> int:
    """
    Byte length of content as it would land on disk.

    base64 → decoded length; utf8/text → UTF-8 length; binary → buffer length.
    """
    if isinstance(content, (bytes, bytearray)):
        return len(content)
    if encoding == "base64":
        return base64_decoded_length(content)
    return len(content.encode("utf-8"))


def should_spill(content: str | bytes, max_size: int = MAX_RESPONSE_BYTES) -> bool:
    """
    Check if a serialized payload exceeds the transport limit.

    Strings are measured in UTF-8 bytes. Exactly max_size stays inline.
    """
    if isinstance(content, (bytes, bytearray)):
        size = len(content)
    else:
        size = len(content.encode("utf-8"))
    return size > max_size


def save_to_disk(
    content: str | bytes,
    filename: str | None,
    encoding: Encoding = "base64",
    *,
    mime_type: str | None = None,
    config: AttachmentConfig | None = None,
) -> SpillRecord:
    """
    Write content to a uniquely named file in the work directory.

    Args:
        content: Base64 text, plain text, or raw bytes
        filename: Original attachment filename (drives base name and extension)
        encoding: How to turn content into bytes
        mime_type: Declared MIME type (for record metadata)
        config: Supplies work_dir and file prefix

    Returns:
        SpillRecord whose size is the byte count on disk

    Raises:
        AttachmentError: DECODE_FAILED for bad Base64, PERSISTENCE_FAILED on I/O errors
    """
    prefix = config.file_prefix if config else DEFAULT_FILE_PREFIX
    data = _to_bytes(content, encoding)

    work_dir = resolve_work_directory(config)
    unique_name = generate_unique_filename(filename, prefix)
    file_path = work_dir / unique_name

    try:
        file_path.write_bytes(data)
        size = file_path.stat().st_size
    except OSError as e:
        raise AttachmentError(
            ErrorKind.PERSISTENCE_FAILED,
            f"Failed to save file: {e}",
            details={"filename": filename, "work_directory": str(work_dir)},
        ) from e

    return SpillRecord(
        file_path=str(file_path.resolve()),
        filename=unique_name,
        size=size,
        original_filename=filename,
        created_at=datetime.now(timezone.utc).isoformat(),
        original_size=len(data),
        mime_type=mime_type,
        encoding=encoding,
        work_directory=str(work_dir),
    )


def persist_if_oversized(
    content: str | bytes,
    filename: str | None,
    encoding: Encoding = "base64",
    max_size: int = MAX_RESPONSE_BYTES,
    *,
    measure: str | bytes | None = None,
    mime_type: str | None = None,
    config: AttachmentConfig | None = None,
) -> InlineContent | SpillRecord:
    """
    Return content inline, or write it to disk if it breaks the limit.

    By default the content itself is measured. Pass measure to apply the
    limit to a different payload — e.g. the serialized response that would
    carry the content — while still writing content to disk.

    Args:
        content: What gets written if the limit is exceeded
        filename: Original filename
        encoding: Encoding of content (base64, utf8/text, binary)
        max_size: Transport limit in bytes; exactly max_size stays inline
        measure: Optional payload the limit applies to
        mime_type: Declared MIME type
        config: Work directory and prefix

    Returns:
        InlineContent if it fits, otherwise SpillRecord

    Raises:
        AttachmentError: If the file can't be written
    """
    size = content_byte_length(content, encoding)
    measured = size if measure is None else content_byte_length(measure, "utf8")

    if measured <= max_size:
        return InlineContent(content=content, size=size, encoding=encoding)

    record = save_to_disk(content, filename, encoding, mime_type=mime_type, config=config)
    log_spill(record.file_path, record.size, measured)
    return record


def cleanup_old_files(
    max_age_hours: float = 24,
    config: AttachmentConfig | None = None,
) -> dict[str, Any]:
    """
    Delete spilled files older than max_age_hours.

    Only files carrying our prefix are touched. Per-file failures (already
    deleted, permission denied) are skipped.

    Returns:
        {"cleaned": n, "work_directory": path} or {"cleaned": 0, "error": msg}
    """
    prefix = (config.file_prefix if config else DEFAULT_FILE_PREFIX) + "_"
    work_dir = resolve_work_directory(config)
    cutoff = time.time() - max_age_hours * 3600

    try:
        entries = list(work_dir.iterdir())
    except OSError as e:
        log.warning(f"Failed to list work directory {work_dir}: {e}")
        return {"cleaned": 0, "error": str(e)}

    cleaned = 0
    for entry in entries:
        if not entry.name.startswith(prefix):
            continue
        try:
            if entry.is_file() and entry.stat().st_mtime < cutoff:
                entry.unlink()
                cleaned += 1
        except OSError as e:
            log.debug(f"Skipping {entry.name} during cleanup: {e}")

    log_cleanup(cleaned, str(work_dir))
    return {"cleaned": cleaned, "work_directory": str(work_dir)}


def get_config_info(config: AttachmentConfig | None = None) -> dict[str, Any]:
    """Describe where spilled files go and the active limits."""
    config = config or AttachmentConfig.from_env()
    return {
        "work_directory": str(resolve_work_directory(config)),
        "environment_variable": WORK_DIR_ENV,
        "configured_work_dir": str(config.work_dir) if config.work_dir else "(not set, using system temp)",
        "max_response_size": config.max_response_bytes,
        "file_prefix": config.file_prefix,
        "retention_hours": config.retention_hours,
        "supported_encodings": ["base64", "utf8", "text", "binary"],
    }


def _to_bytes(content: str | bytes, encoding: Encoding) -> bytes:
    """Turn spill content into the bytes that go on disk."""
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    if encoding == "base64":
        try:
            return decode_base64(content)
        except ValueError as e:
            raise AttachmentError(
                ErrorKind.DECODE_FAILED,
                f"Content is not valid Base64: {e}",
            ) from e
    return content.encode("utf-8")
