"""
Attachment pipeline configuration — single source of truth.

All ceilings and the work directory live here. Read the environment once
via AttachmentConfig.from_env() and thread the result into the resolver;
nothing downstream reads os.environ mid-call.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Environment variable selecting where oversized attachments are written
WORK_DIR_ENV = "MCP_OUTLOOK_WORK_DIR"
LOG_LEVEL_ENV = "MCP_OUTLOOK_LOG_LEVEL"

# MCP rejects tool responses above 1 MiB
MAX_RESPONSE_BYTES = 1024 * 1024

DEFAULT_MAX_SHEETS = 10
DEFAULT_MAX_ROWS_PER_SHEET = 1000
DEFAULT_MAX_TEXT_LENGTH = 50_000
DEFAULT_FILE_PREFIX = "outlook"
DEFAULT_RETENTION_HOURS = 24


@dataclass(frozen=True)
class AttachmentConfig:
    """Ceilings and work directory for one resolver instance."""
    work_dir: Path | None = None
    max_sheets: int = DEFAULT_MAX_SHEETS
    max_rows_per_sheet: int = DEFAULT_MAX_ROWS_PER_SHEET
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH
    max_response_bytes: int = MAX_RESPONSE_BYTES
    # Decoded text above this is not inlined; raw Base64 is kept instead
    max_text_display_bytes: int = MAX_RESPONSE_BYTES
    file_prefix: str = DEFAULT_FILE_PREFIX
    retention_hours: float = DEFAULT_RETENTION_HOURS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AttachmentConfig":
        """Build a config from MCP_OUTLOOK_* environment variables."""
        work_dir = os.environ.get(WORK_DIR_ENV, "").strip()
        return cls(
            work_dir=Path(work_dir).expanduser() if work_dir else None,
            log_level=os.environ.get(LOG_LEVEL_ENV, "INFO"),
        )
