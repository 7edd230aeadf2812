from datetime import datetime, timedelta, timezone

import pytest

from noetica.domain.models import Card, CardSchedulingState, Deck
from noetica.infrastructure.adapters.memory_repository import InMemoryCardRepository
from noetica.infrastructure.clock import FixedClock

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_card(
    card_id: str,
    deck_id: str = "deck_a",
    created_at: datetime | None = None,
    **state,
) -> Card:
    """Build a card created at `created_at` (default: one week before NOW)."""
    created = created_at or NOW - timedelta(days=7)
    state.setdefault("next_review_date", created)
    return Card(
        id=card_id,
        deck_id=deck_id,
        front=f"Q {card_id}",
        back=f"A {card_id}",
        created_at=created,
        state=CardSchedulingState(**state),
    )


def make_deck(deck_id: str = "deck_a", name: str = "Biology") -> Deck:
    return Deck(id=deck_id, name=name, created_at=NOW - timedelta(days=30))


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def deck():
    return make_deck()


@pytest.fixture
def repo(deck):
    return InMemoryCardRepository(decks=[deck])


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and the default store from the real home directory
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "NOETICA_BACKEND",
        "NOETICA_STORE_PATH",
        "NOETICA_NEW_CARD_LIMIT",
        "NOETICA_LOG_DIR",
        "NOETICA_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def card_factory():
    return make_card
