"""
Deck mastery: the fraction of a deck's cards that are considered learned.
"""

import logging
from dataclasses import replace

from noetica.domain.constants import MASTERY_EASINESS_THRESHOLD
from noetica.domain.errors import DeckNotFound
from noetica.domain.models import Card
from noetica.domain.ports import CardRepository

logger = logging.getLogger(__name__)


def is_mastered(card: Card) -> bool:
    """
    A card is mastered once reviewed and either on a streak or still easy.
    """
    state = card.state
    return state.review_count >= 1 and (
        state.correct_streak >= 1 or state.easiness_factor >= MASTERY_EASINESS_THRESHOLD
    )


def compute_mastery(cards: list[Card]) -> float:
    """
    Mastered cards over total cards, 0.0 for an empty list.
    """
    if not cards:
        return 0.0
    mastered = sum(1 for card in cards if is_mastered(card))
    return mastered / len(cards)


class MasteryAggregator:
    """
    Recomputes a deck's mastery from its cards and writes it back.

    The score is always derived from scratch, never patched incrementally,
    so calling recompute twice in a row yields the same value.
    """

    def __init__(self, repository: CardRepository):
        self._repo = repository

    async def recompute_mastery(self, deck_id: str) -> float:
        """
        Recompute and stage the mastery of `deck_id`.

        The caller is responsible for committing the repository.

        Raises:
            DeckNotFound: If the deck does not exist.
        """
        deck = await self._repo.get_deck(deck_id)
        if deck is None:
            raise DeckNotFound(deck_id)

        cards = await self._repo.fetch_cards(deck_id)
        mastery = compute_mastery(cards)
        await self._repo.persist(replace(deck, mastery=mastery))

        mastered = sum(1 for card in cards if is_mastered(card))
        logger.info(
            f"Deck '{deck.name}' mastery updated: {int(mastery * 100)}% "
            f"({mastered}/{len(cards)})"
        )
        return mastery
