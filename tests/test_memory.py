import json
from datetime import datetime, timezone

import pytest

from spendlens.categorization.memory import PatternMemory, merchant_key
from spendlens.models import CategoryPattern
from spendlens.storage.base import KeyValueStore
from spendlens.storage.json_file import JsonFileStore
from spendlens.storage.memory import InMemoryStore

KEY = "spendlens_categorization_memory"


class BrokenStore(KeyValueStore):
    """Reads nothing and fails every write."""

    def get(self, key: str) -> str | None:
        return None

    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")

    def remove(self, key: str) -> None:
        raise OSError("read-only")


def _pattern(text: str, category: str, confidence: float = 0.3, usage: int = 1) -> CategoryPattern:
    return CategoryPattern(
        pattern=text,
        category=category,
        confidence=confidence,
        last_seen=datetime(2024, 1, 1, tzinfo=timezone.utc),
        usage_count=usage,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def memory(store):
    return PatternMemory(store, key=KEY)


def test_merchant_key_is_trimmed_and_lowercased():
    assert merchant_key("  NETFLIX Inc ") == "netflix inc"


def test_empty_store_loads_empty_memory(memory):
    assert len(memory) == 0
    assert memory.merchants == {}


def test_memory_persists_across_instances(tmp_path):
    store = JsonFileStore(str(tmp_path))
    memory = PatternMemory(store, key=KEY)
    memory.add_pattern(_pattern("netflix", "Bills & Utilities"))
    memory.remember_merchant("Netflix", "Bills & Utilities")
    assert memory.save()

    reloaded = PatternMemory(JsonFileStore(str(tmp_path)), key=KEY)
    assert len(reloaded) == 1
    assert reloaded.find_pattern("netflix").category == "Bills & Utilities"
    assert reloaded.get_merchant("NETFLIX") == "Bills & Utilities"


def test_persisted_payload_uses_camel_case(store, memory):
    memory.add_pattern(_pattern("netflix", "Bills & Utilities", usage=2))
    memory.remember_merchant("Netflix", "Bills & Utilities")
    memory.save()

    payload = json.loads(store.values[KEY])
    assert payload["merchantPatterns"] == [["netflix", "Bills & Utilities"]]
    stored = payload["patterns"][0]
    assert stored["pattern"] == "netflix"
    assert stored["usageCount"] == 2
    assert "lastSeen" in stored


def test_corrupt_store_starts_empty(caplog):
    store = InMemoryStore({KEY: "{not json"})
    memory = PatternMemory(store, key=KEY)
    assert len(memory) == 0
    assert "corrupt" in caplog.text


def test_invalid_pattern_shape_starts_empty():
    payload = {"patterns": [{"pattern": "ab", "category": "X"}], "merchantPatterns": []}
    memory = PatternMemory(InMemoryStore({KEY: json.dumps(payload)}), key=KEY)
    assert len(memory) == 0


def test_write_failure_keeps_in_memory_state(caplog):
    memory = PatternMemory(BrokenStore(), key=KEY)
    memory.add_pattern(_pattern("netflix", "Bills & Utilities"))

    assert memory.save() is False
    assert memory.find_pattern("netflix") is not None
    assert "Failed to persist" in caplog.text


def test_remember_merchant_first_write_wins(memory):
    assert memory.remember_merchant("Amazon", "Shopping")
    assert not memory.remember_merchant("amazon ", "Bills & Utilities")
    assert memory.get_merchant("AMAZON") == "Shopping"


def test_remember_merchant_ignores_blank_names(memory):
    assert not memory.remember_merchant("   ", "Shopping")
    assert memory.merchants == {}


def test_prune_keeps_highest_scores(store):
    memory = PatternMemory(store, key=KEY, max_patterns=2)
    memory.add_pattern(_pattern("low", "A", confidence=0.3, usage=1))
    memory.add_pattern(_pattern("high", "B", confidence=0.9, usage=3))
    memory.add_pattern(_pattern("mid", "C", confidence=0.5, usage=2))

    assert memory.prune() == 1
    assert [p.pattern for p in memory.patterns] == ["high", "mid"]
    assert memory.find_pattern("low") is None


def test_stats_counts_top_categories(memory):
    memory.add_pattern(_pattern("netflix", "Bills & Utilities"))
    memory.add_pattern(_pattern("spotify", "Bills & Utilities"))
    memory.add_pattern(_pattern("uber", "Transport"))
    memory.remember_merchant("Netflix", "Bills & Utilities")

    stats = memory.stats()
    assert stats.total_patterns == 3
    assert stats.merchant_patterns == 1
    assert stats.top_categories[0].category == "Bills & Utilities"
    assert stats.top_categories[0].count == 2


def test_export_then_import_into_fresh_memory(memory):
    memory.add_pattern(_pattern("netflix", "Bills & Utilities", confidence=0.6, usage=4))
    memory.remember_merchant("Netflix", "Bills & Utilities")
    exported = memory.export_json()
    assert "exportedAt" in json.loads(exported)

    fresh = PatternMemory(InMemoryStore(), key=KEY)
    assert fresh.import_json(exported)
    restored = fresh.find_pattern("netflix")
    assert restored.confidence == pytest.approx(0.6)
    assert restored.usage_count == 4
    assert fresh.get_merchant("netflix") == "Bills & Utilities"


def test_import_replaces_only_present_parts(memory):
    memory.add_pattern(_pattern("netflix", "Bills & Utilities"))
    memory.remember_merchant("Netflix", "Bills & Utilities")

    assert memory.import_json(json.dumps({"merchantPatterns": [["uber", "Transport"]]}))
    assert memory.find_pattern("netflix") is not None
    assert memory.merchants == {"uber": "Transport"}


def test_malformed_import_leaves_memory_untouched(memory, caplog):
    memory.add_pattern(_pattern("netflix", "Bills & Utilities"))

    assert memory.import_json("[1, 2, 3]") is False
    assert memory.import_json("not json") is False
    assert len(memory) == 1
    assert "Failed to import" in caplog.text


def test_import_truncates_to_limit(store):
    memory = PatternMemory(store, key=KEY, max_patterns=3)
    payload = {
        "patterns": [
            _pattern(f"pattern{i}", "A", usage=i + 1).model_dump(mode="json", by_alias=True)
            for i in range(10)
        ]
    }
    assert memory.import_json(json.dumps(payload))
    assert len(memory) == 3
    assert memory.patterns[0].pattern == "pattern9"


def test_reset_clears_memory_and_store(store, memory):
    memory.add_pattern(_pattern("netflix", "Bills & Utilities"))
    memory.save()
    assert KEY in store.values

    memory.reset()
    assert len(memory) == 0
    assert KEY not in store.values


def test_undecodable_file_starts_empty(tmp_path, caplog):
    store = JsonFileStore(str(tmp_path))
    with open(store.path_for(KEY), "wb") as f:
        f.write(b"\xff\xfe{garbage")

    memory = PatternMemory(store, key=KEY)
    assert len(memory) == 0
    assert memory.merchants == {}
    assert "Failed to read" in caplog.text


def test_import_clamps_confidence(memory):
    payload = {
        "patterns": [
            _pattern("netflix", "Bills & Utilities", confidence=0.1).model_dump(mode="json", by_alias=True),
            _pattern("spotify", "Bills & Utilities", confidence=1.0).model_dump(mode="json", by_alias=True),
        ]
    }
    assert memory.import_json(json.dumps(payload))
    assert memory.find_pattern("netflix").confidence == pytest.approx(0.3)
    assert memory.find_pattern("spotify").confidence == pytest.approx(0.95)


def test_import_normalizes_pattern_text(memory):
    payload = {
        "patterns": [
            {
                "pattern": "NETFLIX  Inc",
                "category": "Bills & Utilities",
                "confidence": 0.5,
                "lastSeen": "2024-01-01T00:00:00Z",
                "usageCount": 1,
            }
        ]
    }
    assert memory.import_json(json.dumps(payload))
    assert memory.patterns[0].pattern == "netflix inc"
    assert memory.find_pattern("netflix inc") is not None


def test_import_normalizes_merchant_keys(memory):
    payload = {
        "merchantPatterns": [
            [" Netflix ", "Bills & Utilities"],
            ["NETFLIX", "Entertainment"],
            ["   ", "Shopping"],
        ]
    }
    assert memory.import_json(json.dumps(payload))
    assert memory.merchants == {"netflix": "Bills & Utilities"}
    assert memory.get_merchant("netflix") == "Bills & Utilities"
