"""DOCX package validation helpers.

Checks an exported payload before it is handed to a client: ZIP signature
first, then the OPC parts every WordprocessingML package needs.
"""

from __future__ import annotations

import zipfile
from io import BytesIO

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
REQUIRED_PARTS = ("[Content_Types].xml", "word/document.xml")


def has_zip_signature(content: bytes) -> bool:
    """Return True if `content` starts with the ZIP local file header b"PK\\x03\\x04"."""
    if not isinstance(content, (bytes, bytearray)):
        return False
    if len(content) < 4:
        return False
    return bytes(content)[:4] == b"PK\x03\x04"


def is_valid_docx(content: bytes) -> bool:
    """Return True if `content` is a readable ZIP holding the core DOCX parts."""
    if not has_zip_signature(content):
        return False
    try:
        with zipfile.ZipFile(BytesIO(bytes(content))) as archive:
            names = set(archive.namelist())
            if archive.testzip() is not None:
                return False
    except zipfile.BadZipFile:
        return False
    return all(part in names for part in REQUIRED_PARTS)


__all__ = ["DOCX_MIME", "REQUIRED_PARTS", "has_zip_signature", "is_valid_docx"]
