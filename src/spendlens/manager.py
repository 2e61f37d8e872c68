from collections.abc import Iterable

from spendlens.categorization.learner import PatternLearner
from spendlens.categorization.memory import PatternMemory
from spendlens.categorization.rules import guess_category
from spendlens.categorization.suggest import SuggestionEngine
from spendlens.core.policy import LearningPolicy
from spendlens.core.settings import MEMORY_STORE_KEY
from spendlens.logger import get_logger
from spendlens.models import MemoryStats, Suggestion, Transaction, TransactionSuggestion
from spendlens.storage.base import KeyValueStore
from spendlens.storage.json_file import JsonFileStore

logger = get_logger(__name__)


class CategorizerService:
    def __init__(self,
                 store: KeyValueStore | None = None,
                 policy: LearningPolicy | None = None,
                 data_dir: str = ".",
                 use_rules: bool = True):

        self.policy = policy or LearningPolicy.from_env()
        self.store = store if store is not None else JsonFileStore(data_dir)

        # One memory instance shared by the single writer and the reader.
        self.memory = PatternMemory(
            self.store,
            key=MEMORY_STORE_KEY,
            max_patterns=self.policy.max_patterns,
            confidence_bounds=(self.policy.start_confidence, self.policy.max_confidence),
        )
        self.learner = PatternLearner(self.memory, self.policy)
        self.engine = SuggestionEngine(self.memory, self.policy)
        self.use_rules = use_rules

    def suggest(self, description: str, merchant_name: str | None = None) -> Suggestion | None:
        return self.engine.suggest(description, merchant_name)

    def categorize(self, description: str, merchant_name: str | None = None) -> Suggestion | None:
        """
        Learned memory first, then the keyword rules.
        """
        suggestion = self.engine.suggest(description, merchant_name)
        if suggestion:
            logger.debug(
                f"Memory returned: '{suggestion.category}' "
                f"(confidence: {suggestion.confidence:.2f}, source: {suggestion.source})"
            )
            return suggestion

        if self.use_rules:
            category = guess_category(description)
            if category:
                logger.debug(f"Rules returned: '{category}' for '{description[:50]}'")
                return Suggestion(
                    category=category,
                    confidence=self.policy.rules_confidence,
                    source="rules",
                )

        logger.debug(f"No classifier matched for: '{description[:50]}...'")
        return None

    def suggest_uncategorized(
        self,
        transactions: Iterable[Transaction],
        min_confidence: float | None = None,
    ) -> list[TransactionSuggestion]:
        """
        Memory suggestions for every transaction still in a placeholder
        category, most confident first and larger amounts first among equals.
        With ``min_confidence`` only suggestions strictly above it are kept.
        """
        results = []
        for t in transactions:
            if t.category not in self.policy.sentinel_categories:
                continue
            suggestion = self.engine.suggest(t.description, t.merchant_name)
            if suggestion:
                results.append(TransactionSuggestion(
                    transaction=t,
                    category=suggestion.category,
                    confidence=suggestion.confidence,
                    source=suggestion.source,
                ))
            else:
                results.append(TransactionSuggestion(transaction=t))

        if min_confidence is not None:
            results = [r for r in results if r.confidence > min_confidence]
        results.sort(key=lambda r: (-r.confidence, -r.transaction.amount))
        logger.debug(f"Suggested categories for {len(results)} uncategorized transactions.")
        return results

    def learn(self, description: str, merchant_name: str | None, category: str) -> None:
        self.learner.learn(description, merchant_name, category)

    def stats(self) -> MemoryStats:
        return self.memory.stats()

    def export_memory(self) -> str:
        return self.memory.export_json()

    def import_memory(self, data: str) -> bool:
        return self.memory.import_json(data)

    def clear_memory(self) -> None:
        self.memory.reset()
        logger.info("Categorization memory cleared.")
