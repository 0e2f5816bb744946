from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class ParsedBlock(BaseModel):
    page: int | None = None
    text: str


class ParsedDoc(BaseModel):
    doc_id: str
    source_type: str
    extractor: str
    text: str
    page_count: int = 0
    blocks: list[ParsedBlock] = Field(default_factory=list)
    parsing_warnings: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("source_type")
    @classmethod
    def _validate_source_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized != "pdf":
            raise ValueError("source_type must be: pdf")
        return normalized

    @field_validator("extractor")
    @classmethod
    def _validate_extractor(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"pdfco", "pypdf"}:
            raise ValueError("extractor must be one of: pdfco, pypdf")
        return normalized
