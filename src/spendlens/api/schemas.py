from pydantic import BaseModel, Field

from spendlens.models import CamelModel, Transaction


class DescribeRequest(CamelModel):
    description: str
    merchant_name: str | None = None


class LearnRequest(DescribeRequest):
    category: str


class TransactionsRequest(BaseModel):
    transactions: list[Transaction]


class HabitTaxRequest(TransactionsRequest):
    habits: list[str] | None = None


class BatchSuggestRequest(CamelModel):
    transactions: list[Transaction]
    high_confidence_only: bool = False
    min_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
