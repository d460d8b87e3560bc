"""
Shared test helpers for building attachment payloads.

Import from here instead of duplicating encoding/workbook/document boilerplate.
"""

import base64
import io
import zipfile
from xml.sax.saxutils import escape

from openpyxl import Workbook


def b64(data: bytes | str) -> str:
    """Base64-encode bytes (or UTF-8 text) the way Graph returns contentBytes."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def build_workbook(sheets: dict[str, list[list]]) -> bytes:
    """
    Build an .xlsx in memory.

    Args:
        sheets: Sheet name -> rows, in file order. Empty rows list = empty sheet.

    Example:
        build_workbook({"Summary": [["Name", "Total"], ["Alice", 10]]})
    """
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


_DOCX_CONTENT_TYPES = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>
<Default Extension="xml" ContentType="application/xml"/>
<Override PartName="/word/document.xml" ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>
</Types>"""

_DOCX_RELS = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
<Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" Target="word/document.xml"/>
</Relationships>"""

_DOCX_DOCUMENT_RELS = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships"/>"""


def build_docx(paragraphs: list[str]) -> bytes:
    """
    Build a minimal .docx in memory: one w:p per paragraph, no styles.

    Example:
        build_docx(["Quarterly summary", "Revenue is up"])
    """
    body = "".join(
        f"<w:p><w:r><w:t>{escape(text)}</w:t></w:r></w:p>" for text in paragraphs
    )
    document = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body>{body}</w:body></w:document>"
    )
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as docx:
        docx.writestr("[Content_Types].xml", _DOCX_CONTENT_TYPES)
        docx.writestr("_rels/.rels", _DOCX_RELS)
        docx.writestr("word/_rels/document.xml.rels", _DOCX_DOCUMENT_RELS)
        docx.writestr("word/document.xml", document)
    return buffer.getvalue()
