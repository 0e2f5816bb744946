from __future__ import annotations

import logging

import httpx

from app.core.config import settings
from app.parsing.models import ParsedDoc
from app.parsing.parse import DocumentExtractionError, compute_doc_id, parse_pdf_bytes, validate_pdf_upload

logger = logging.getLogger(__name__)

PDFCO_API_URL = "https://api.pdf.co/v1"


class PdfCoClient:
    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout_s: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = (api_key if api_key is not None else settings.pdfco_api_key or "").strip()
        self._timeout_s = timeout_s or max(settings.http_timeout_s, 30.0)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def extract_text(self, content: bytes, filename: str) -> ParsedDoc:
        if not self._api_key:
            raise DocumentExtractionError("PDFCO_API_KEY is not configured", code="not_configured")

        headers = {"x-api-key": self._api_key}
        try:
            with httpx.Client(timeout=self._timeout_s, transport=self._transport) as client:
                presign = client.get(
                    f"{PDFCO_API_URL}/file/upload/get-presigned-url",
                    params={"name": filename, "contenttype": "application/pdf"},
                    headers=headers,
                )
                presign.raise_for_status()
                upload = presign.json()
                presigned_url = upload.get("presignedUrl")
                file_url = upload.get("url")
                if not presigned_url or not file_url:
                    raise DocumentExtractionError("PDF.co did not return an upload URL", code="malformed")

                put = client.put(presigned_url, content=content, headers={"Content-Type": "application/pdf"})
                put.raise_for_status()

                converted = client.post(
                    f"{PDFCO_API_URL}/pdf/convert/to/text",
                    json={"url": file_url, "inline": True, "async": False},
                    headers=headers,
                )
                converted.raise_for_status()
                data = converted.json()
        except DocumentExtractionError:
            raise
        except httpx.HTTPError as exc:
            raise DocumentExtractionError(f"PDF.co request failed: {exc}") from exc
        except ValueError as exc:
            raise DocumentExtractionError("PDF.co returned a non-JSON payload", code="malformed") from exc

        if not isinstance(data, dict) or data.get("error"):
            raise DocumentExtractionError("PDF.co returned an error during text extraction")

        text = str(data.get("body") or "")
        return ParsedDoc(
            doc_id=compute_doc_id(text, filename),
            source_type="pdf",
            extractor="pdfco",
            text=text,
            page_count=int(data.get("pageCount") or 0),
            metadata={"remaining_credits": data.get("remainingCredits")},
        )


def extract_pdf_text(content: bytes, filename: str, *, client: PdfCoClient | None = None) -> ParsedDoc:
    """Extract resume text through PDF.co, or locally with pypdf when PDF.co is not configured."""
    validate_pdf_upload(content, filename)
    pdfco = client or PdfCoClient()
    if pdfco.configured:
        parsed = pdfco.extract_text(content, filename)
    else:
        logger.info("pdfco_not_configured using local pypdf extraction")
        parsed = parse_pdf_bytes(content, filename)

    if not parsed.text.strip():
        raise DocumentExtractionError("No extractable text found in PDF.", code="empty_text")
    return parsed
