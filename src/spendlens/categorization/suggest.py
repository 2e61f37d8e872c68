from spendlens.core.policy import DEFAULT_LEARNING_POLICY, LearningPolicy
from spendlens.logger import get_logger
from spendlens.models import Suggestion

from .memory import PatternMemory

logger = get_logger(__name__)


class SuggestionEngine:
    def __init__(self, memory: PatternMemory, policy: LearningPolicy = DEFAULT_LEARNING_POLICY):
        self.memory = memory
        self.policy = policy

    def suggest(self, description: str, merchant_name: str | None = None) -> Suggestion | None:
        # A known merchant beats any description pattern.
        if merchant_name and merchant_name.strip():
            category = self.memory.get_merchant(merchant_name)
            if category:
                return Suggestion(
                    category=category,
                    confidence=self.policy.merchant_confidence,
                    source="merchant",
                )

        desc = description.lower()
        best = None
        for pattern in self.memory.patterns:
            if pattern.pattern in desc and (best is None or pattern.confidence > best.confidence):
                best = pattern

        if best is None:
            logger.debug("[SUGGEST] No pattern matched '%s'.", description[:50])
            return None

        logger.debug(
            "[SUGGEST] '%s' matched pattern '%s' -> '%s' (%.2f).",
            description[:50],
            best.pattern,
            best.category,
            best.confidence,
        )
        return Suggestion(category=best.category, confidence=best.confidence, source="pattern")
