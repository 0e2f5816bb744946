from __future__ import annotations

import hashlib
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from .models import ParsedBlock, ParsedDoc

PDF_MAGIC = b"%PDF"


class DocumentExtractionError(ValueError):
    def __init__(self, message: str, *, code: str = "extraction_failed"):
        super().__init__(message)
        self.code = code


def compute_doc_id(text: str, filename: str) -> str:
    seed = text if text.strip() else filename
    digest = hashlib.sha256(seed.encode("utf-8", errors="ignore")).hexdigest()
    return digest[:16]


def validate_pdf_upload(content: bytes, filename: str) -> None:
    if not filename.lower().endswith(".pdf"):
        raise DocumentExtractionError("Only PDF files are supported", code="unsupported_type")
    if not content:
        raise DocumentExtractionError("Uploaded file is empty", code="empty_file")
    if content.lstrip()[:4] != PDF_MAGIC:
        raise DocumentExtractionError("Uploaded file is not a valid PDF", code="invalid_pdf")


def parse_pdf_bytes(content: bytes, filename: str) -> ParsedDoc:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []

    try:
        reader = PdfReader(BytesIO(content))
        text_parts: list[str] = []
        for index, page in enumerate(reader.pages, start=1):
            page_text = (page.extract_text() or "").strip()
            if page_text:
                text_parts.append(page_text)
                blocks.append(ParsedBlock(page=index, text=page_text))
        page_count = len(reader.pages)
    except (PyPdfError, ValueError, OSError) as exc:
        raise DocumentExtractionError(f"PDF parsing failed: {exc}") from exc

    if not text_parts:
        warnings.append("No extractable text found in PDF.")

    text = "\n".join(text_parts)
    return ParsedDoc(
        doc_id=compute_doc_id(text, filename),
        source_type="pdf",
        extractor="pypdf",
        text=text,
        page_count=page_count,
        blocks=blocks,
        parsing_warnings=warnings,
    )
