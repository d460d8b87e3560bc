"""
Spreadsheet adapter — XLSX-family workbooks via openpyxl.

Loads the workbook in memory, reads each worksheet's used range, and hands
the rows to the sheets extractor for capping. Corrupt or unsupported files
(legacy .xls, .xlsb, encrypted workbooks) return a ParseFailure.
"""

import io
import logging

from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from config import DEFAULT_MAX_ROWS_PER_SHEET, DEFAULT_MAX_SHEETS
from extractors.sheets import extract_sheet, extract_spreadsheet
from logging_config import log_parse
from models import ContentCategory, ParseFailure, SheetContent, SpreadsheetContent

log = logging.getLogger(__name__)

UNSUPPORTED_NOTE = "File may be corrupted or in an unsupported spreadsheet format"


def parse_spreadsheet(
    data: bytes,
    filename: str | None = None,
    max_sheets: int = DEFAULT_MAX_SHEETS,
    max_rows_per_sheet: int = DEFAULT_MAX_ROWS_PER_SHEET,
) -> SpreadsheetContent | ParseFailure:
    """
    Parse a workbook into capped per-sheet cell matrices.

    Args:
        data: Raw workbook bytes
        filename: Original attachment filename (for result metadata)
        max_sheets: Stop after this many sheets (file order)
        max_rows_per_sheet: Displayed-row ceiling per sheet

    Returns:
        SpreadsheetContent, or ParseFailure if the workbook can't be read
    """
    log_parse("spreadsheet", filename, len(data))

    try:
        workbook = load_workbook(io.BytesIO(data), data_only=True)
    except Exception as e:
        log.warning(f"Spreadsheet parse failed for {filename}: {e}")
        return ParseFailure(
            category=ContentCategory.SPREADSHEET,
            error=f"Failed to parse spreadsheet: {e}",
            note=UNSUPPORTED_NOTE,
        )

    try:
        worksheets = list(workbook.worksheets)
        sheets = [
            _read_sheet(ws, max_rows_per_sheet)
            for ws in worksheets[:max_sheets]
        ]
    except Exception as e:
        log.warning(f"Spreadsheet read failed for {filename}: {e}")
        return ParseFailure(
            category=ContentCategory.SPREADSHEET,
            error=f"Failed to read spreadsheet: {e}",
            note=UNSUPPORTED_NOTE,
        )
    finally:
        workbook.close()

    result = extract_spreadsheet(
        filename=filename,
        sheets=sheets,
        sheet_names=[ws.title for ws in worksheets],
        max_sheets=max_sheets,
        max_rows_per_sheet=max_rows_per_sheet,
    )
    log.debug(f"Parsed {len(sheets)} of {result.total_sheets} sheets from {filename}")
    return result


def _read_sheet(ws: Worksheet, max_rows: int) -> SheetContent:
    """Read one worksheet's used range, fetching at most max_rows rows."""
    if _is_empty(ws):
        return extract_sheet(ws.title, [], 0, 0, "", max_rows)

    min_row, max_row = ws.min_row, ws.max_row
    min_col, max_col = ws.min_column, ws.max_column
    total_rows = max_row - min_row + 1
    total_columns = max_col - min_col + 1
    cell_range = (
        f"{get_column_letter(min_col)}{min_row}:{get_column_letter(max_col)}{max_row}"
    )

    rows = ws.iter_rows(
        min_row=min_row,
        max_row=min(max_row, min_row + max_rows - 1),
        min_col=min_col,
        max_col=max_col,
        values_only=True,
    )
    return extract_sheet(ws.title, rows, total_rows, total_columns, cell_range, max_rows)


def _is_empty(ws: Worksheet) -> bool:
    """A sheet with no cells reports A1:A1; tell that apart from a lone value in A1."""
    return (
        ws.max_row == 1
        and ws.max_column == 1
        and ws.cell(row=1, column=1).value is None
    )
