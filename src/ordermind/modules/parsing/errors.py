from __future__ import annotations


class ParsingError(RuntimeError):
    pass


class AttachmentParseError(ParsingError):
    """A single attachment could not be turned into evidence. Recorded, never fatal."""


class PdfDecodeError(AttachmentParseError):
    pass


class SpreadsheetDecodeError(AttachmentParseError):
    pass


class EvidencePackInvalidError(ParsingError):
    """The assembled pack failed validation; nothing may be persisted for this attempt."""

    def __init__(self, message: str, *, problems: list[str] | None = None) -> None:
        super().__init__(message)
        self.problems = problems or []
