# bcalm/services/parse_utils.py
"""
Helpers to extract text from uploaded CV bytes.
- PDF  -> pdfminer.six
- DOCX -> python-docx
- legacy .doc (OLE) -> no text
- TXT / anything else -> decode bytes
"""
import io
import logging
from pathlib import Path
from typing import Tuple

from docx import Document
from pdfminer.high_level import extract_text_to_fp

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".pdf", ".doc", ".docx", ".txt")
OLE_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

def _is_pdf_bytes(b: bytes) -> bool:
    return b.startswith(b"%PDF")

def _is_docx_bytes(b: bytes) -> bool:
    # docx is a zip archive, so it starts with the PK header
    return b.startswith(b"PK")

def _is_ole_bytes(b: bytes) -> bool:
    return b.startswith(OLE_MAGIC)

def has_allowed_extension(filename: str) -> bool:
    return Path(filename or "").suffix.lower() in ALLOWED_EXTENSIONS

def parse_text_bytes(b: bytes, encoding: str = "utf-8") -> str:
    return b.decode(encoding, errors="replace")

def parse_docx_bytes(b: bytes) -> str:
    doc = Document(io.BytesIO(b))
    paras = [p.text.strip() for p in doc.paragraphs if p.text and p.text.strip()]
    return "\n".join(paras)

def parse_pdf_bytes(b: bytes) -> str:
    output = io.StringIO()
    extract_text_to_fp(io.BytesIO(b), output, laparams=None)
    return output.getvalue()

def extract_text_auto(b: bytes) -> Tuple[str, str]:
    """
    Detect the type from the leading bytes and parse. Returns (text, type_str),
    type_str one of "pdf", "docx", "txt", "pdf_unreadable", "docx_unreadable",
    "doc_legacy", "unknown". Unreadable binaries come back as empty text rather
    than decoded noise.
    """
    if not b:
        return "", "unknown"

    if _is_pdf_bytes(b):
        try:
            return parse_pdf_bytes(b), "pdf"
        except Exception:
            logger.warning("Unreadable PDF upload", exc_info=True)
            return "", "pdf_unreadable"
    if _is_docx_bytes(b):
        try:
            return parse_docx_bytes(b), "docx"
        except Exception:
            logger.warning("Unreadable DOCX upload", exc_info=True)
            return "", "docx_unreadable"
    if _is_ole_bytes(b):
        # Word 97-2003 binary, no parser for it
        return "", "doc_legacy"

    return parse_text_bytes(b), "txt"

def meaningful_length(text: str) -> int:
    """Characters left once whitespace and replacement characters are dropped."""
    return sum(1 for ch in text if not ch.isspace() and ch != "�")
