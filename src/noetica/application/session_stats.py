"""
Session statistics: what is waiting to be studied and what was studied today.
"""

from collections import Counter
from datetime import datetime, timedelta

from noetica.domain.constants import DEFAULT_NEW_CARD_LIMIT
from noetica.domain.models import StudyOverview, StudySessionStats
from noetica.domain.ports import CardRepository

from .selector import DueSetSelector


def start_of_day(moment: datetime) -> datetime:
    """Midnight of the calendar day containing `moment`, same tzinfo."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class SessionStatsService:
    """
    Composes selector counts and repository totals into snapshots.

    Follows Dependency Inversion: depends on the CardRepository port only.
    """

    def __init__(
        self,
        repository: CardRepository,
        selector: DueSetSelector | None = None,
        new_card_limit: int = DEFAULT_NEW_CARD_LIMIT,
    ):
        """
        Args:
            repository: The repository (port) for fetching cards and decks.
            selector: Optional custom selector; built from the repository if not provided.
            new_card_limit: Cap applied to the new-card count in session stats.
        """
        self._repo = repository
        self._selector = selector or DueSetSelector(repository)
        self._new_card_limit = new_card_limit

    async def session_stats(
        self, deck_id: str | None = None, *, now: datetime
    ) -> StudySessionStats:
        """
        Snapshot of due, new, total and reviewed-today counts.

        The new-card count is capped at new_card_limit; use the selector
        directly for the full population.
        """
        due = await self._selector.due_cards(deck_id, now=now)
        new = await self._selector.new_cards(deck_id, limit=self._new_card_limit)
        cards = await self._repo.fetch_cards(deck_id)

        day_start = start_of_day(now)
        day_end = day_start + timedelta(days=1)
        reviewed_today = sum(
            1
            for card in cards
            if card.state.last_review_date is not None
            and day_start <= card.state.last_review_date < day_end
        )

        return StudySessionStats(
            due_cards=len(due),
            new_cards=len(new),
            total_cards=len(cards),
            reviewed_today=reviewed_today,
        )

    async def study_overview(self) -> StudyOverview:
        """
        Deck and card totals with the mean deck mastery, plus mastery and
        card count per deck.
        """
        decks = await self._repo.fetch_decks()
        cards = await self._repo.fetch_cards()

        average = sum(d.mastery for d in decks) / len(decks) if decks else 0.0
        counts = Counter(c.deck_id for c in cards)

        return StudyOverview(
            total_decks=len(decks),
            total_cards=len(cards),
            average_mastery=average,
            deck_mastery={d.id: d.mastery for d in decks},
            deck_card_counts={d.id: counts[d.id] for d in decks},
        )
