from pathlib import Path

import pytest

from linkpulse.adapters.clock import FixedClock
from linkpulse.adapters.memory_store import InMemoryClickStore
from linkpulse.rules.loader import load_rules
from linkpulse.rules.models import Rules
from tests.factories import NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def rules() -> Rules:
    """Load the real rules file from the project root."""
    rules_path = Path("rules.yaml").resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def store() -> InMemoryClickStore:
    return InMemoryClickStore()
