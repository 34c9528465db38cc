from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FieldType = Literal["string", "number", "date", "boolean", "array", "address"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldDef(_CamelModel):
    key: str
    label: str
    type: FieldType
    required: bool = True
    description: str
    examples: list[str] | None = None


class OrderTypeConfig(_CamelModel):
    model_config = ConfigDict(frozen=True)

    order_type: str
    label: str
    description: str
    fields: tuple[FieldDef, ...]

    @property
    def field_keys(self) -> list[str]:
        return [f.key for f in self.fields]


class ExtractedFieldValue(_CamelModel):
    key: str
    value: Any = None
    confidence: float = Field(ge=0.0, le=1.0)
    evidence_ref: str | None = None


class ExtractionResult(_CamelModel):
    order_type: str
    fields: list[ExtractedFieldValue]
    overall_confidence: float = Field(ge=0.0, le=1.0)


class ExtractRequest(_CamelModel):
    order_type: str
