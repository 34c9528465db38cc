from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ordermind.api.deps import get_storage, require_api_key
from ordermind.core.storage import ObjectStorage, diagnose_storage
from ordermind.modules.audit.api import router as audit_router
from ordermind.modules.extraction.api import router as extraction_router
from ordermind.modules.messages.api import router as messages_router
from ordermind.modules.orders.api import router as orders_router
from ordermind.modules.parsing.api import router as parsing_router

router = APIRouter()

_api_deps = [Depends(require_api_key)]
router.include_router(messages_router, prefix="/api", dependencies=_api_deps)
router.include_router(orders_router, prefix="/api", dependencies=_api_deps)
router.include_router(parsing_router, prefix="/api", dependencies=_api_deps)
router.include_router(extraction_router, prefix="/api", dependencies=_api_deps)
router.include_router(audit_router, prefix="/api", dependencies=_api_deps)


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz/storage")
def healthz_storage(
    *, write_test: bool = False, storage: ObjectStorage = Depends(get_storage)
) -> JSONResponse:
    result = diagnose_storage(storage, write_test=write_test)
    status_code = 200 if result.get("ok") else 503
    return JSONResponse(status_code=status_code, content=result)
