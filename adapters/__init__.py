"""
Adapters — Thin wrappers over third-party document parsers.

openpyxl for workbooks, markitdown for PDF/Word/PowerPoint.
Parse failures come back as ParseFailure results, never exceptions.
"""
