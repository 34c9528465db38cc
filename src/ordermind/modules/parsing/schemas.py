"""
Evidence pack data model.

Everything here is immutable and serializes with camelCase keys, which is the
shape persisted in `parsing_evidence_pack.data` and returned by the API.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SegmentType = Literal["plain", "quote", "forward_header", "signature", "greeting"]
SheetTableKind = Literal["table", "key_value"]


class EvidenceModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EmailSegment(EvidenceModel):
    type: SegmentType
    content: str
    from_: str | None = Field(default=None, alias="from")
    date: str | None = None


class EmailEvidence(EvidenceModel):
    segments: list[EmailSegment] = Field(default_factory=list)


class TextTable(EvidenceModel):
    headers: list[str] | None = None
    rows: list[list[str]] = Field(default_factory=list)


class PdfPage(EvidenceModel):
    page_number: int = Field(ge=1)
    text: str
    tables: list[TextTable] = Field(default_factory=list)
    # True when the text is a character-count slice, not a real page boundary.
    approximate: bool = False


class PdfEvidence(EvidenceModel):
    attachment_id: uuid.UUID
    filename: str
    pages: list[PdfPage] = Field(default_factory=list)

    @model_validator(mode="after")
    def _pages_are_contiguous(self) -> PdfEvidence:
        numbers = [p.page_number for p in self.pages]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(f"page numbers must run 1..{len(numbers)}, got {numbers}")
        return self


class SheetTable(EvidenceModel):
    range: str | None = None
    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    kind: SheetTableKind = "table"

    @model_validator(mode="after")
    def _rows_carry_every_header(self) -> SheetTable:
        expected = set(self.headers)
        if len(expected) != len(self.headers):
            raise ValueError("header names must be unique")
        for idx, row in enumerate(self.rows):
            if set(row) != expected:
                raise ValueError(f"row {idx} keys do not match headers")
        return self


class ExcelSheet(EvidenceModel):
    name: str
    tables: list[SheetTable] = Field(default_factory=list)
    cells_sample: list[dict[str, Any]] | None = None


class ExcelEvidence(EvidenceModel):
    attachment_id: uuid.UUID
    filename: str
    sheets: list[ExcelSheet] = Field(default_factory=list)


class ParseQuality(EvidenceModel):
    score: float = Field(ge=0.0, le=1.0)
    errors: list[str] = Field(default_factory=list)


class EvidencePack(EvidenceModel):
    id: uuid.UUID
    order_id: uuid.UUID
    email: EmailEvidence
    pdfs: list[PdfEvidence] = Field(default_factory=list)
    excels: list[ExcelEvidence] = Field(default_factory=list)
    parse_quality: ParseQuality


class EvidencePackSummaryOut(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    parse_score: float
    created_at: datetime
    # False for packs superseded by a later parse of the same order.
    current: bool
