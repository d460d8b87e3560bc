"""
Workspace — Work directory management for oversized responses.

Spills attachment content that won't fit the MCP response limit to
{prefix}_{name}_{timestamp}_{random}{ext} files, and sweeps old ones.
"""

from .manager import (
    sanitize_base_name,
    generate_unique_filename,
    resolve_work_directory,
    content_byte_length,
    should_spill,
    save_to_disk,
    persist_if_oversized,
    cleanup_old_files,
    get_config_info,
)

__all__ = [
    "sanitize_base_name",
    "generate_unique_filename",
    "resolve_work_directory",
    "content_byte_length",
    "should_spill",
    "save_to_disk",
    "persist_if_oversized",
    "cleanup_old_files",
    "get_config_info",
]
