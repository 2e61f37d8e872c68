from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from spendlens.api.dependencies import get_service
from spendlens.logger import get_logger
from spendlens.manager import CategorizerService
from spendlens.models import MemoryStats

logger = get_logger(__name__)

router = APIRouter(prefix="/memory")


@router.get("/stats", response_model=MemoryStats)
async def memory_stats(
    service: Annotated[CategorizerService, Depends(get_service)],
) -> MemoryStats:
    return service.stats()


@router.get("/export")
async def export_memory(
    service: Annotated[CategorizerService, Depends(get_service)],
) -> Response:
    return Response(
        content=service.export_memory(),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="categorization-memory.json"'},
    )


@router.post("/import")
async def import_memory(
    request: Request,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> dict[str, str | int]:
    body = (await request.body()).decode("utf-8", errors="replace")
    if not service.import_memory(body):
        raise HTTPException(status_code=400, detail="Invalid categorization memory payload")
    stats = service.stats()
    return {
        "status": "success",
        "patterns": stats.total_patterns,
        "merchants": stats.merchant_patterns,
    }


@router.post("/clear")
async def clear_memory(
    service: Annotated[CategorizerService, Depends(get_service)],
) -> dict[str, str]:
    service.clear_memory()
    logger.info("[MEMORY] Cleared by user.")
    return {"status": "success", "message": "Categorization memory cleared"}
