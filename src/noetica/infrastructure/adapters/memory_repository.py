"""
In-Memory Card Repository — dict-backed adapter.

Implements CardRepository without any I/O. Used by tests and by the
"memory" backend for throwaway sessions.
"""

from dataclasses import replace
from datetime import datetime

from noetica.domain.models import Card, Deck
from noetica.domain.ports import CardRepository


class InMemoryCardRepository(CardRepository):
    """
    Stores cards and decks in insertion-ordered dicts.

    Objects are copied on the way in and out so callers cannot mutate
    stored state without going through persist().
    """

    def __init__(self, decks: list[Deck] | None = None, cards: list[Card] | None = None):
        self._decks: dict[str, Deck] = {d.id: replace(d) for d in decks or []}
        self._cards: dict[str, Card] = {c.id: replace(c) for c in cards or []}
        self.commit_count = 0

    async def fetch_cards(self, deck_id: str | None = None) -> list[Card]:
        return [replace(c) for c in self._cards.values() if _in_deck(c, deck_id)]

    async def fetch_cards_by_due_date(
        self, deck_id: str | None = None, *, as_of: datetime
    ) -> list[Card]:
        return [
            replace(c)
            for c in self._cards.values()
            if _in_deck(c, deck_id) and c.state.next_review_date <= as_of
        ]

    async def fetch_cards_by_review_count(
        self, deck_id: str | None = None, *, review_count: int
    ) -> list[Card]:
        return [
            replace(c)
            for c in self._cards.values()
            if _in_deck(c, deck_id) and c.state.review_count == review_count
        ]

    async def get_card(self, card_id: str) -> Card | None:
        card = self._cards.get(card_id)
        return replace(card) if card else None

    async def get_deck(self, deck_id: str) -> Deck | None:
        deck = self._decks.get(deck_id)
        return replace(deck) if deck else None

    async def fetch_decks(self) -> list[Deck]:
        return [replace(d) for d in self._decks.values()]

    async def persist(self, item: Card | Deck) -> None:
        if isinstance(item, Card):
            self._cards[item.id] = replace(item)
        else:
            self._decks[item.id] = replace(item)

    async def commit(self) -> None:
        self.commit_count += 1


def _in_deck(card: Card, deck_id: str | None) -> bool:
    return deck_id is None or card.deck_id == deck_id
