"""
Shared pytest fixtures for attachment pipeline tests.

Workbooks and .docx files are built in memory, so spreadsheet and document
tests can exercise the real parsers. markitdown is patched at the adapter
seam (adapters.office._extract_with_markitdown) where a test needs fixed text.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from config import AttachmentConfig, WORK_DIR_ENV
from tests.helpers import build_workbook


# ============================================================================
# Workbook Fixtures
# ============================================================================

@pytest.fixture
def workbook_factory() -> Callable[[dict[str, list[list]]], bytes]:
    """Factory fixture: sheets dict -> xlsx bytes."""
    return build_workbook


@pytest.fixture
def three_sheet_workbook() -> bytes:
    """Three sheets, header plus 49 data rows each (50 rows total)."""
    return build_workbook({
        name: [["ID", "Item", "Amount"]] + [[i, f"{name} {i}", i * 10] for i in range(1, 50)]
        for name in ("Q1", "Q2", "Q3")
    })


# ============================================================================
# Config Fixtures
# ============================================================================

@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Empty work directory for spilled files."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def config(work_dir: Path) -> AttachmentConfig:
    """Default ceilings, spilling into the test's work directory."""
    return AttachmentConfig(work_dir=work_dir)


@pytest.fixture(autouse=True)
def _clear_work_dir_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests never inherit a work directory from the developer's shell."""
    monkeypatch.delenv(WORK_DIR_ENV, raising=False)
