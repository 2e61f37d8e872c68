import json
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from pydantic import TypeAdapter, ValidationError

from spendlens.core.settings import MEMORY_STORE_KEY
from spendlens.logger import get_logger
from spendlens.models import CategoryCount, CategoryPattern, MemoryStats
from spendlens.storage.base import KeyValueStore

logger = get_logger(__name__)

_PATTERNS_ADAPTER = TypeAdapter(list[CategoryPattern])
_MERCHANTS_ADAPTER = TypeAdapter(list[tuple[str, str]])

DEFAULT_MAX_PATTERNS = 500
DEFAULT_CONFIDENCE_BOUNDS = (0.3, 0.95)


def merchant_key(merchant_name: str) -> str:
    return merchant_name.strip().lower()


class PatternMemory:
    """
    Learned categorization state: scored description n-grams plus
    merchant -> category associations.

    The memory is loaded from ``store`` once, on construction. Every mutation
    is written straight back through ``save()``. Store failures are logged
    and never raised; after a failed write the in-process state stays
    authoritative for the rest of the session.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = MEMORY_STORE_KEY,
        max_patterns: int = DEFAULT_MAX_PATTERNS,
        confidence_bounds: tuple[float, float] = DEFAULT_CONFIDENCE_BOUNDS,
    ):
        self.store = store
        self.key = key
        self.max_patterns = max_patterns
        self.confidence_bounds = confidence_bounds
        self.patterns: list[CategoryPattern] = []
        self.merchants: dict[str, str] = {}
        self._index: dict[str, CategoryPattern] = {}
        self.load()

    def __len__(self) -> int:
        return len(self.patterns)

    def load(self) -> None:
        try:
            raw = self.store.get(self.key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("[MEMORY] Failed to read categorization memory: %s", e)
            raw = None

        self._replace([], {})
        if not raw:
            return

        try:
            patterns, merchants = self._parse_payload(json.loads(raw))
        except (ValueError, TypeError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning("[MEMORY] Ignoring corrupt categorization memory: %s", e)
            return

        self._replace(patterns or [], merchants or {})
        logger.info(
            "[MEMORY] Loaded %d patterns and %d merchant associations.",
            len(self.patterns),
            len(self.merchants),
        )

    def save(self) -> bool:
        try:
            self.store.set(self.key, json.dumps(self.to_payload()))
        except OSError as e:
            logger.warning("[MEMORY] Failed to persist categorization memory: %s", e)
            return False
        return True

    def reset(self) -> None:
        self._replace([], {})
        try:
            self.store.remove(self.key)
        except OSError as e:
            logger.warning("[MEMORY] Failed to remove persisted memory: %s", e)
        logger.debug("[MEMORY] Categorization memory cleared.")

    def to_payload(self) -> dict[str, Any]:
        return {
            "patterns": [p.model_dump(mode="json", by_alias=True) for p in self.patterns],
            "merchantPatterns": [[key, category] for key, category in self.merchants.items()],
        }

    def export_json(self) -> str:
        payload = self.to_payload()
        payload["exportedAt"] = datetime.now(timezone.utc).isoformat()
        return json.dumps(payload, indent=2)

    def import_json(self, data: str) -> bool:
        try:
            patterns, merchants = self._parse_payload(json.loads(data))
        except (ValueError, TypeError, ValidationError) as e:
            logger.error("[MEMORY] Failed to import categorization memory: %s", e)
            return False

        self._replace(
            patterns if patterns is not None else self.patterns,
            merchants if merchants is not None else self.merchants,
        )
        self.prune()
        self.save()
        logger.info(
            "[MEMORY] Imported %d patterns and %d merchant associations.",
            len(self.patterns),
            len(self.merchants),
        )
        return True

    def _parse_payload(
        self,
        payload: Any,
    ) -> tuple[list[CategoryPattern] | None, dict[str, str] | None]:
        if not isinstance(payload, dict):
            raise TypeError(f"expected a JSON object, got {type(payload).__name__}")

        patterns = None
        raw_patterns = payload.get("patterns")
        if isinstance(raw_patterns, list):
            patterns = _PATTERNS_ADAPTER.validate_python(raw_patterns)
            low, high = self.confidence_bounds
            for pattern in patterns:
                pattern.confidence = min(high, max(low, pattern.confidence))

        merchants = None
        raw_merchants = payload.get("merchantPatterns")
        if isinstance(raw_merchants, list):
            merchants = {}
            for name, category in _MERCHANTS_ADAPTER.validate_python(raw_merchants):
                key = merchant_key(name)
                if key:
                    # first association for a key wins, as when learning
                    merchants.setdefault(key, category)

        return patterns, merchants

    def _replace(self, patterns: list[CategoryPattern], merchants: dict[str, str]) -> None:
        self.patterns = list(patterns)
        self.merchants = dict(merchants)
        self._reindex()

    def _reindex(self) -> None:
        self._index = {}
        for pattern in self.patterns:
            self._index.setdefault(pattern.pattern, pattern)

    def get_merchant(self, merchant_name: str) -> str | None:
        return self.merchants.get(merchant_key(merchant_name))

    def remember_merchant(self, merchant_name: str, category: str) -> bool:
        """Map a merchant to a category unless it is already mapped."""
        key = merchant_key(merchant_name)
        if not key or key in self.merchants:
            return False
        self.merchants[key] = category
        return True

    def find_pattern(self, text: str) -> CategoryPattern | None:
        return self._index.get(text)

    def add_pattern(self, pattern: CategoryPattern) -> None:
        self.patterns.append(pattern)
        self._index.setdefault(pattern.pattern, pattern)

    def prune(self) -> int:
        """Keep the best ``max_patterns`` by confidence x usage. Returns how many were evicted."""
        self.patterns.sort(key=lambda p: p.score, reverse=True)
        evicted = max(0, len(self.patterns) - self.max_patterns)
        if evicted:
            del self.patterns[self.max_patterns:]
            self._reindex()
            logger.debug("[MEMORY] Evicted %d low-scoring patterns.", evicted)
        return evicted

    def stats(self, top: int = 5) -> MemoryStats:
        counts = Counter(p.category for p in self.patterns)
        return MemoryStats(
            total_patterns=len(self.patterns),
            merchant_patterns=len(self.merchants),
            top_categories=[
                CategoryCount(category=category, count=count)
                for category, count in counts.most_common(top)
            ],
        )
