"""
Review Service — Application layer orchestrator.

Runs one review as a single transaction:
1. Read the card's current state
2. Compute the next state with the pure scheduler
3. Write the card back and recompute the owning deck's mastery
4. Commit
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from typing import TypeVar

from noetica.domain.constants import DEFAULT_PERSIST_RETRIES, DEFAULT_RETRY_DELAY
from noetica.domain.errors import CardNotFound, StorageError
from noetica.domain.models import Card, ReviewQuality
from noetica.domain.ports import CardRepository, Clock

from .mastery import MasteryAggregator
from .scheduler import schedule

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _KeyedLocks:
    """One asyncio.Lock per key, dropped once nobody holds or waits on it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


@dataclass
class ReviewOutcome:
    """Result of a committed review."""

    card: Card
    deck_mastery: float


class ReviewService:
    """
    Application service for grading cards.

    Reviews of the same card, and mastery updates of the same deck, are
    serialized so a background sync and a foreground review cannot lose
    each other's writes. Locks are always taken card first, then deck.
    """

    def __init__(
        self,
        repository: CardRepository,
        clock: Clock,
        mastery: MasteryAggregator | None = None,
        retries: int = DEFAULT_PERSIST_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        """
        Args:
            repository: The repository (port) holding cards and decks.
            clock: Source of the review timestamp.
            mastery: Optional custom aggregator; built from the repository if not provided.
            retries: Extra attempts for a transient StorageError on write or commit.
            retry_delay: Seconds to wait between attempts.
        """
        self._repo = repository
        self._clock = clock
        self._mastery = mastery or MasteryAggregator(repository)
        self._retries = max(retries, 0)
        self._retry_delay = retry_delay
        self._card_locks = _KeyedLocks()
        self._deck_locks = _KeyedLocks()

    async def review(self, card_id: str, quality: ReviewQuality) -> ReviewOutcome:
        """
        Grade a card, reschedule it and refresh its deck's mastery.

        Raises:
            CardNotFound: If no card has this id.
            StorageError: If persisting fails and retries are exhausted or
                the failure is not transient.
        """
        async with self._card_locks.hold(card_id):
            card = await self._repo.get_card(card_id)
            if card is None:
                raise CardNotFound(card_id)

            async with self._deck_locks.hold(card.deck_id):
                now = self._clock.now()
                new_state = schedule(card.state, quality, now)
                updated = replace(card, state=new_state)
                logger.debug(
                    f"Card {card_id} graded {quality.title}: "
                    f"interval {card.state.interval} -> {new_state.interval}, "
                    f"ease {card.state.easiness_factor:.2f} -> {new_state.easiness_factor:.2f}"
                )

                await self._with_retry("persist card", lambda: self._repo.persist(updated))
                mastery = await self._with_retry(
                    "recompute mastery",
                    lambda: self._mastery.recompute_mastery(updated.deck_id),
                )
                await self._with_retry("commit", self._repo.commit)

        logger.info(
            f"Card {card_id} reviewed ({quality.title}); next review "
            f"{new_state.next_review_date.isoformat()}"
        )
        return ReviewOutcome(card=updated, deck_mastery=mastery)

    async def _with_retry(self, action: str, operation: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await operation()
            except StorageError as e:
                if not e.transient or attempt >= self._retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Transient storage failure during {action} "
                    f"(attempt {attempt}/{self._retries}): {e}"
                )
                await asyncio.sleep(self._retry_delay)
