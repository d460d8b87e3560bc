"""
Sheets Extractor — Pure functions shaping workbook rows into capped results.

Receives rows already read from the workbook, returns SheetContent /
SpreadsheetContent with truncation metadata. No file parsing, no logging.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta
from typing import Any

from models import CellValue, SheetContent, SpreadsheetContent


def extract_sheet(
    name: str,
    rows: Iterable[Sequence[Any]],
    total_rows: int,
    total_columns: int,
    cell_range: str,
    max_rows: int,
) -> SheetContent:
    """
    Build one sheet's content, keeping at most max_rows rows.

    total_rows is the sheet's real row count, reported even when the
    displayed data is cut.

    Args:
        name: Sheet title
        rows: Row values in sheet order (may be longer than max_rows)
        total_rows: Rows in the sheet's used range
        total_columns: Columns in the sheet's used range
        cell_range: Used range, e.g. "A1:D50"
        max_rows: Row ceiling

    Returns:
        SheetContent with data capped at max_rows
    """
    data: list[list[CellValue]] = []
    for row in rows:
        if len(data) >= max_rows:
            break
        data.append([normalize_cell(v) for v in row])

    truncated = total_rows > max_rows
    note = None
    if truncated:
        note = f"Sheet truncated to {max_rows} rows (total: {total_rows})"

    return SheetContent(
        name=name,
        rows=total_rows,
        columns=total_columns,
        range=cell_range,
        data=data,
        truncated=truncated,
        note=note,
    )


def extract_spreadsheet(
    filename: str | None,
    sheets: list[SheetContent],
    sheet_names: list[str],
    max_sheets: int,
    max_rows_per_sheet: int,
) -> SpreadsheetContent:
    """
    Assemble the workbook result, noting omitted sheets.

    Args:
        filename: Original attachment filename
        sheets: Extracted sheets, already capped at max_sheets
        sheet_names: Every sheet name in file order
        max_sheets: Sheet ceiling applied
        max_rows_per_sheet: Row ceiling applied

    Returns:
        SpreadsheetContent
    """
    note = None
    if len(sheet_names) > max_sheets:
        note = f"Only first {max_sheets} sheets displayed (total: {len(sheet_names)})"

    return SpreadsheetContent(
        filename=filename,
        sheets=sheets,
        total_sheets=len(sheet_names),
        sheet_names=list(sheet_names),
        max_sheets=max_sheets,
        max_rows_per_sheet=max_rows_per_sheet,
        note=note,
    )


def normalize_cell(value: Any) -> CellValue:
    """
    Make a cell value JSON-friendly.

    Dates and times become ISO strings; anything else exotic becomes str().
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return str(value)
