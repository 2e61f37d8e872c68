from typing import Annotated

from fastapi import APIRouter, Depends

from spendlens.api.dependencies import get_service
from spendlens.api.schemas import BatchSuggestRequest, DescribeRequest, LearnRequest
from spendlens.logger import get_logger
from spendlens.manager import CategorizerService
from spendlens.models import Suggestion, TransactionSuggestion

logger = get_logger(__name__)

router = APIRouter()


@router.post("/suggest", response_model=Suggestion | None)
async def suggest_category(
    req: DescribeRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> Suggestion | None:
    return service.suggest(req.description, req.merchant_name)


@router.post("/suggest/batch", response_model=list[TransactionSuggestion])
async def suggest_uncategorized(
    req: BatchSuggestRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> list[TransactionSuggestion]:
    min_confidence = req.min_confidence
    if req.high_confidence_only:
        min_confidence = service.policy.high_confidence_threshold
    return service.suggest_uncategorized(req.transactions, min_confidence)


@router.post("/categorize", response_model=Suggestion | None)
async def categorize_transaction(
    req: DescribeRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> Suggestion | None:
    return service.categorize(req.description, req.merchant_name)


@router.post("/learn")
async def learn_transaction(
    req: LearnRequest,
    service: Annotated[CategorizerService, Depends(get_service)],
) -> dict[str, str | int]:
    logger.info(
        "[LEARN] '%s' (merchant: %s) -> Category: '%s'",
        req.description[:50],
        req.merchant_name or "N/A",
        req.category,
    )
    service.learn(req.description, req.merchant_name, req.category)
    return {
        "status": "success",
        "message": "Learned new transaction",
        "patterns": len(service.memory),
    }
