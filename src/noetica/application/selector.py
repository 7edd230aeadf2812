"""
Due-set selector: which cards to study next.

Builds ordered study lists from the repository's due-date and review-count queries.
"""

import logging
from datetime import datetime

from noetica.domain.constants import DEFAULT_NEW_CARD_LIMIT
from noetica.domain.models import Card
from noetica.domain.ports import CardRepository

logger = logging.getLogger(__name__)


class DueSetSelector:
    """
    Read-only queries for due and new cards.

    Results are deterministic for identical repository state.
    """

    def __init__(self, repository: CardRepository):
        self._repo = repository

    async def due_cards(self, deck_id: str | None = None, *, now: datetime) -> list[Card]:
        """
        Cards whose next review is at or before `now`.

        Ordered by next_review_date, then by ascending easiness_factor so the
        cards most at risk of being forgotten come first.
        """
        cards = await self._repo.fetch_cards_by_due_date(deck_id, as_of=now)
        due = [c for c in cards if c.state.next_review_date <= now]
        due.sort(key=_due_sort_key)
        logger.debug(f"{len(due)} due cards (deck={deck_id})")
        return due

    async def new_cards(
        self, deck_id: str | None = None, limit: int = DEFAULT_NEW_CARD_LIMIT
    ) -> list[Card]:
        """
        Never-reviewed cards, oldest created first, at most `limit` of them.
        """
        cards = await self._repo.fetch_cards_by_review_count(deck_id, review_count=0)
        fresh = [c for c in cards if c.state.review_count == 0]
        fresh.sort(key=lambda c: (c.created_at, c.id))
        return fresh[: max(limit, 0)]


def _due_sort_key(card: Card):
    return (
        card.state.next_review_date,
        card.state.easiness_factor,
        card.created_at,
        card.id,
    )
