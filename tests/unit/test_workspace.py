"""Unit tests for workspace manager (spill and retention)."""

import os
import re
import tempfile
import time
from pathlib import Path

import pytest

from config import AttachmentConfig, WORK_DIR_ENV
from models import AttachmentError, ErrorKind, InlineContent, SpillRecord
from workspace import (
    cleanup_old_files,
    content_byte_length,
    generate_unique_filename,
    get_config_info,
    persist_if_oversized,
    resolve_work_directory,
    sanitize_base_name,
    save_to_disk,
    should_spill,
)

from tests.helpers import b64

UNIQUE_NAME = re.compile(r"^outlook_(?P<base>[A-Za-z0-9._-]+)_(?P<ts>\d{13})_(?P<rand>[a-z0-9]{6})(?P<ext>\.[A-Za-z0-9]+)?$")


class TestSanitizeBaseName:
    """Tests for filesystem-safe base names."""

    def test_spaces_and_punctuation(self) -> None:
        assert sanitize_base_name("Q4 Report (final)") == "Q4-Report-final"

    def test_unicode(self) -> None:
        assert sanitize_base_name("Über Präsentation") == "Uber-Prasentation"

    def test_path_traversal(self) -> None:
        assert sanitize_base_name("../../etc/passwd") == "passwd"
        assert sanitize_base_name("..\\..\\secret") == "secret"

    def test_truncates(self) -> None:
        assert len(sanitize_base_name("a" * 200)) == 50

    def test_empty_falls_back(self) -> None:
        assert sanitize_base_name("!!!") == "file"


class TestGenerateUniqueFilename:
    """Tests for the {prefix}_{base}_{ms}_{random}{ext} scheme."""

    def test_pattern(self) -> None:
        name = generate_unique_filename("Q4 Report.xlsx")
        match = UNIQUE_NAME.match(name)
        assert match
        assert match["base"] == "Q4-Report"
        assert match["ext"] == ".xlsx"

    def test_no_name(self) -> None:
        assert re.match(r"^outlook_file_\d{13}_[a-z0-9]{6}$", generate_unique_filename(None))

    def test_custom_prefix(self) -> None:
        assert generate_unique_filename("a.txt", prefix="mail").startswith("mail_a_")

    def test_names_differ(self) -> None:
        names = {generate_unique_filename("same.pdf") for _ in range(50)}
        assert len(names) == 50


class TestResolveWorkDirectory:
    """Tests for work directory selection and fallback."""

    def test_configured_directory_created(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "dir"
        assert resolve_work_directory(AttachmentConfig(work_dir=target)) == target
        assert target.is_dir()

    def test_unset_uses_temp(self) -> None:
        assert resolve_work_directory(AttachmentConfig()) == Path(tempfile.gettempdir())

    def test_env_used_without_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(WORK_DIR_ENV, str(tmp_path))
        assert resolve_work_directory() == tmp_path

    def test_uncreatable_falls_back(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        config = AttachmentConfig(work_dir=blocker / "sub")
        assert resolve_work_directory(config) == Path(tempfile.gettempdir())


class TestSizes:
    """Tests for byte measurement and the spill threshold."""

    def test_content_byte_length(self) -> None:
        assert content_byte_length(b64(b"x" * 10), "base64") == 10
        assert content_byte_length("héllo", "utf8") == 6
        assert content_byte_length(b"\x00\x01", "binary") == 2

    def test_exactly_max_stays_inline(self) -> None:
        assert should_spill("a" * 100, 100) is False
        assert should_spill("a" * 101, 100) is True

    def test_measures_utf8_bytes(self) -> None:
        # 50 two-byte characters = 100 bytes
        assert should_spill("é" * 50, 99) is True


class TestSaveToDisk:
    """Tests for writing spill files."""

    def test_writes_decoded_bytes(self, config: AttachmentConfig, work_dir: Path) -> None:
        payload = bytes(range(256)) * 4

        record = save_to_disk(b64(payload), "blob.bin", "base64", mime_type="application/octet-stream", config=config)

        path = Path(record.file_path)
        assert path.parent == work_dir.resolve()
        assert path.read_bytes() == payload
        assert record.size == len(payload) == path.stat().st_size
        assert record.original_filename == "blob.bin"
        assert UNIQUE_NAME.match(record.filename)

    def test_text_encoding(self, config: AttachmentConfig) -> None:
        record = save_to_disk("héllo", "note.txt", "utf8", config=config)
        assert Path(record.file_path).read_text(encoding="utf-8") == "héllo"

    def test_bad_base64(self, config: AttachmentConfig) -> None:
        with pytest.raises(AttachmentError) as exc_info:
            save_to_disk("***", "x.bin", "base64", config=config)
        assert exc_info.value.kind == ErrorKind.DECODE_FAILED

    def test_write_failure(self, config: AttachmentConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        def refuse(self: Path, data: bytes) -> int:
            raise OSError("No space left on device")

        monkeypatch.setattr(Path, "write_bytes", refuse)

        with pytest.raises(AttachmentError) as exc_info:
            save_to_disk(b64(b"data"), "x.bin", "base64", config=config)
        assert exc_info.value.kind == ErrorKind.PERSISTENCE_FAILED
        assert "No space left on device" in exc_info.value.message


class TestPersistIfOversized:
    """Tests for the inline-or-spill decision."""

    def test_inline_at_limit(self, config: AttachmentConfig, work_dir: Path) -> None:
        content = "a" * 100

        result = persist_if_oversized(content, "a.txt", "utf8", max_size=100, config=config)

        assert isinstance(result, InlineContent)
        assert result.content == content
        assert list(work_dir.iterdir()) == []

    def test_spills_one_over_limit(self, config: AttachmentConfig) -> None:
        result = persist_if_oversized("a" * 101, "a.txt", "utf8", max_size=100, config=config)

        assert isinstance(result, SpillRecord)
        assert result.size == 101
        assert Path(result.file_path).stat().st_size == 101

    def test_measure_overrides_content(self, config: AttachmentConfig) -> None:
        """Small content still spills when the carrying payload is too big."""
        content = b64(b"tiny")

        result = persist_if_oversized(content, "t.bin", "base64", max_size=50, measure="x" * 51, config=config)

        assert isinstance(result, SpillRecord)
        assert Path(result.file_path).read_bytes() == b"tiny"


class TestCleanupOldFiles:
    """Tests for the retention sweep."""

    def _age(self, path: Path, hours: float) -> None:
        past = time.time() - hours * 3600
        os.utime(path, (past, past))

    def test_removes_only_old_prefixed_files(self, config: AttachmentConfig, work_dir: Path) -> None:
        old = work_dir / "outlook_old_1_abcdef.pdf"
        fresh = work_dir / "outlook_new_2_ghijkl.pdf"
        foreign = work_dir / "someone-else.pdf"
        for path in (old, fresh, foreign):
            path.write_bytes(b"x")
        self._age(old, 25)
        self._age(foreign, 48)

        result = cleanup_old_files(24, config)

        assert result == {"cleaned": 1, "work_directory": str(work_dir)}
        assert not old.exists()
        assert fresh.exists()
        assert foreign.exists()

    def test_zero_hours_removes_everything_prefixed(self, config: AttachmentConfig, work_dir: Path) -> None:
        target = work_dir / "outlook_a_1_aaaaaa.txt"
        target.write_bytes(b"x")
        self._age(target, 0.01)

        assert cleanup_old_files(0, config)["cleaned"] == 1

    def test_listing_failure(self, config: AttachmentConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        def refuse(self: Path):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "iterdir", refuse)

        result = cleanup_old_files(24, config)

        assert result["cleaned"] == 0
        assert "denied" in result["error"]


class TestGetConfigInfo:
    """Tests for the config report."""

    def test_reports_directory_and_limits(self, config: AttachmentConfig, work_dir: Path) -> None:
        info = get_config_info(config)

        assert info["work_directory"] == str(work_dir)
        assert info["environment_variable"] == WORK_DIR_ENV
        assert info["max_response_size"] == 1024 * 1024
        assert info["file_prefix"] == "outlook"

    def test_unset_directory(self) -> None:
        info = get_config_info(AttachmentConfig())
        assert info["configured_work_dir"] == "(not set, using system temp)"
