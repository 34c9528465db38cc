from __future__ import annotations

import uuid
from collections.abc import Sequence

from pydantic import ValidationError

from ordermind.modules.parsing.errors import EvidencePackInvalidError
from ordermind.modules.parsing.schemas import (
    EmailSegment,
    EvidencePack,
    ExcelEvidence,
    ParseQuality,
    PdfEvidence,
)

DEFAULT_ERROR_PENALTY = 0.15


def compute_parse_quality(
    errors: Sequence[str], *, penalty: float = DEFAULT_ERROR_PENALTY
) -> ParseQuality:
    # Linear penalty per error, floored at zero; every error weighs the same.
    score = max(0.0, 1.0 - penalty * len(errors))
    return ParseQuality(score=score, errors=list(errors))


def assemble_evidence_pack(
    *,
    order_id: uuid.UUID,
    segments: Sequence[EmailSegment],
    pdfs: Sequence[PdfEvidence],
    excels: Sequence[ExcelEvidence],
    errors: Sequence[str],
    penalty: float = DEFAULT_ERROR_PENALTY,
    pack_id: uuid.UUID | None = None,
) -> EvidencePack:
    """
    Merge parsed email and attachment evidence into one validated pack.

    The pack is rebuilt from plain data and validated as a whole, so a malformed
    piece anywhere raises EvidencePackInvalidError instead of yielding a partial pack.
    """
    try:
        quality = compute_parse_quality(errors, penalty=penalty)
        raw = {
            "id": pack_id or uuid.uuid4(),
            "orderId": order_id,
            "email": {"segments": [_as_data(s) for s in segments]},
            "pdfs": [_as_data(p) for p in pdfs],
            "excels": [_as_data(x) for x in excels],
            "parseQuality": _as_data(quality),
        }
        return EvidencePack.model_validate(raw)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise EvidencePackInvalidError(
            f"Evidence pack for order {order_id} failed validation", problems=problems
        ) from e


def _as_data(item):
    if hasattr(item, "to_json_dict"):
        return item.to_json_dict()
    return item
