from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Transaction(CamelModel):
    id: str
    date: date
    description: str
    merchant_name: str | None = None
    amount: float = Field(ge=0)  # magnitude only; direction lives in is_income
    category: str = "Uncategorized"
    sub_category: str | None = None
    is_income: bool = False
    source: str = ""
    is_internal_transfer: bool = False
    linked_to_id: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: object) -> object:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and len(value) > 10:
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
            except ValueError:
                return value
        return value

    @property
    def month_key(self) -> str:
        return self.date.strftime("%Y-%m")

    @property
    def merchant_or_description(self) -> str:
        return self.merchant_name or self.description


class CategoryPattern(CamelModel):
    pattern: str = Field(min_length=3)
    category: str
    confidence: float = Field(ge=0.0, le=1.0)
    last_seen: datetime
    usage_count: int = Field(ge=1)

    @field_validator("pattern", mode="before")
    @classmethod
    def _normalize_pattern(cls, value: object) -> object:
        # descriptions are matched lowercased, so stored grams must be too
        if isinstance(value, str):
            return " ".join(value.lower().split())
        return value

    @property
    def score(self) -> float:
        return self.confidence * self.usage_count


SuggestionSource = Literal["merchant", "pattern", "rules"]


class Suggestion(BaseModel):
    category: str
    confidence: float  # 0.0 to 1.0
    source: SuggestionSource


class CategoryCount(BaseModel):
    category: str
    count: int


class MemoryStats(CamelModel):
    total_patterns: int
    merchant_patterns: int
    top_categories: list[CategoryCount]


class TransactionSuggestion(BaseModel):
    transaction: Transaction
    category: str | None = None
    confidence: float = 0.0
    source: SuggestionSource | None = None
