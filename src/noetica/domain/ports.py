"""
Ports (interfaces) for card storage and time.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import Card, Deck


class Clock(ABC):
    """Source of the current time, injected so scheduling is testable."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class CardRepository(ABC):
    """
    Port for reading and writing flashcards and decks.

    Implementations:
        - InMemoryCardRepository: dict-backed, used by tests and ephemeral runs.
        - YamlCardRepository: a single YAML document on disk.

    Every method may raise StorageError.
    """

    @abstractmethod
    async def fetch_cards(self, deck_id: str | None = None) -> list[Card]:
        """
        Fetch all cards, optionally restricted to one deck.
        """
        pass

    @abstractmethod
    async def fetch_cards_by_due_date(
        self, deck_id: str | None = None, *, as_of: datetime
    ) -> list[Card]:
        """
        Fetch cards whose next_review_date is at or before as_of.

        No ordering is guaranteed; callers sort.
        """
        pass

    @abstractmethod
    async def fetch_cards_by_review_count(
        self, deck_id: str | None = None, *, review_count: int
    ) -> list[Card]:
        """
        Fetch cards that have been reviewed exactly review_count times.
        """
        pass

    @abstractmethod
    async def get_card(self, card_id: str) -> Card | None:
        pass

    @abstractmethod
    async def get_deck(self, deck_id: str) -> Deck | None:
        pass

    @abstractmethod
    async def fetch_decks(self) -> list[Deck]:
        pass

    @abstractmethod
    async def persist(self, item: Card | Deck) -> None:
        """
        Stage a created or updated card or deck for the next commit.
        """
        pass

    @abstractmethod
    async def commit(self) -> None:
        """
        Make every staged change durable.
        """
        pass
