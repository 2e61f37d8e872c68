from datetime import datetime, timezone

from spendlens.core.policy import DEFAULT_LEARNING_POLICY, LearningPolicy
from spendlens.logger import get_logger
from spendlens.models import CategoryPattern

from .memory import PatternMemory

logger = get_logger(__name__)


def tokenize(description: str, min_token_length: int = 3) -> list[str]:
    return [word for word in description.lower().split() if len(word) >= min_token_length]


def extract_ngrams(
    description: str,
    *,
    max_size: int = 3,
    min_token_length: int = 3,
    min_gram_length: int = 3,
) -> list[str]:
    """
    All contiguous 1..max_size token windows of the description, shortest
    windows first. Duplicates are kept: a gram that occurs twice is learned
    twice.
    """
    words = tokenize(description, min_token_length)
    grams: list[str] = []
    for size in range(1, max_size + 1):
        for start in range(len(words) - size + 1):
            gram = " ".join(words[start:start + size])
            if len(gram) >= min_gram_length:
                grams.append(gram)
    return grams


class PatternLearner:
    def __init__(self, memory: PatternMemory, policy: LearningPolicy = DEFAULT_LEARNING_POLICY):
        self.memory = memory
        self.policy = policy

    def learn(self, description: str, merchant_name: str | None, category: str) -> None:
        """
        Record that a transaction with this description (and merchant) belongs
        to ``category``. The memory is pruned and persisted before returning.
        """
        if not category or category in self.policy.sentinel_categories:
            logger.debug("[LEARN] Skipping unresolved category '%s'.", category)
            return

        if merchant_name and self.memory.remember_merchant(merchant_name, category):
            logger.debug("[LEARN] Merchant '%s' -> '%s'.", merchant_name.strip(), category)

        now = datetime.now(timezone.utc)
        created = 0
        reinforced = 0
        for gram in extract_ngrams(
            description,
            max_size=self.policy.max_gram_size,
            min_token_length=self.policy.min_token_length,
            min_gram_length=self.policy.min_gram_length,
        ):
            existing = self.memory.find_pattern(gram)
            if existing:
                existing.usage_count += 1
                existing.last_seen = now
                existing.confidence = min(
                    self.policy.max_confidence,
                    existing.confidence + self.policy.confidence_step,
                )
                reinforced += 1
            else:
                self.memory.add_pattern(CategoryPattern(
                    pattern=gram,
                    category=category,
                    confidence=self.policy.start_confidence,
                    last_seen=now,
                    usage_count=1,
                ))
                created += 1

        self.memory.prune()
        self.memory.save()
        logger.debug(
            "[LEARN] '%s' -> '%s': %d new, %d reinforced, %d stored.",
            description[:50],
            category,
            created,
            reinforced,
            len(self.memory),
        )
