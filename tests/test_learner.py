import pytest

from spendlens.categorization.learner import PatternLearner, extract_ngrams, tokenize
from spendlens.categorization.memory import PatternMemory
from spendlens.core.policy import LearningPolicy
from spendlens.storage.memory import InMemoryStore


@pytest.fixture
def memory():
    return PatternMemory(InMemoryStore())


@pytest.fixture
def learner(memory):
    return PatternLearner(memory, LearningPolicy())


def test_tokenize_drops_short_words():
    assert tokenize("POS Netflix.com CA 12") == ["pos", "netflix.com"]


def test_extract_ngrams_shortest_first():
    assert extract_ngrams("Whole Foods Market") == [
        "whole",
        "foods",
        "market",
        "whole foods",
        "foods market",
        "whole foods market",
    ]


def test_extract_ngrams_keeps_duplicates():
    assert extract_ngrams("coffee coffee", max_size=1) == ["coffee", "coffee"]


def test_learn_creates_patterns_at_start_confidence(learner, memory):
    learner.learn("Netflix Subscription", None, "Bills & Utilities")

    assert {p.pattern for p in memory.patterns} == {
        "netflix",
        "subscription",
        "netflix subscription",
    }
    for pattern in memory.patterns:
        assert pattern.confidence == pytest.approx(0.3)
        assert pattern.usage_count == 1
        assert pattern.category == "Bills & Utilities"


def test_learn_reinforces_existing_patterns(learner, memory):
    learner.learn("Netflix", None, "Bills & Utilities")
    learner.learn("Netflix", None, "Bills & Utilities")
    learner.learn("Netflix", None, "Bills & Utilities")

    pattern = memory.find_pattern("netflix")
    assert pattern.usage_count == 3
    assert pattern.confidence == pytest.approx(0.4)


def test_reinforcement_keeps_original_category(learner, memory):
    learner.learn("Netflix", None, "Bills & Utilities")
    learner.learn("Netflix", None, "Fun & Hobbies")

    pattern = memory.find_pattern("netflix")
    assert pattern.category == "Bills & Utilities"
    assert pattern.usage_count == 2


def test_confidence_is_capped(learner, memory):
    for _ in range(30):
        learner.learn("Spotify", None, "Bills & Utilities")
    assert memory.find_pattern("spotify").confidence == pytest.approx(0.95)


def test_sentinel_categories_are_not_learned(learner, memory):
    learner.learn("Netflix", "Netflix", "Uncategorized")
    learner.learn("Netflix", "Netflix", "Categorizing...")
    learner.learn("Netflix", "Netflix", "")

    assert len(memory) == 0
    assert memory.merchants == {}


def test_merchant_association_first_write_wins(learner, memory):
    learner.learn("AMZN Mktp", "Amazon", "Shopping")
    learner.learn("Prime Video", "Amazon", "Bills & Utilities")
    assert memory.get_merchant("amazon") == "Shopping"


def test_pattern_limit_enforced_after_learning():
    memory = PatternMemory(InMemoryStore(), max_patterns=500)
    learner = PatternLearner(memory, LearningPolicy())
    for i in range(200):
        learner.learn(f"vendor{i:03d} store{i:03d}", None, "Shopping")

    assert len(memory) == 500


def test_learn_persists_memory():
    store = InMemoryStore()
    learner = PatternLearner(PatternMemory(store), LearningPolicy())
    learner.learn("Netflix", None, "Bills & Utilities")

    reloaded = PatternMemory(store)
    assert reloaded.find_pattern("netflix") is not None
