"""
Domain models for flashcard scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum

from .constants import INITIAL_EASINESS, INITIAL_INTERVAL


class ReviewQuality(IntEnum):
    """
    Self-assessed recall quality for a single review, ordered worst to best.
    """

    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3

    @property
    def title(self) -> str:
        return self.name.capitalize()

    @property
    def description(self) -> str:
        return _QUALITY_DESCRIPTIONS[self]


_QUALITY_DESCRIPTIONS = {
    ReviewQuality.AGAIN: "Completely forgot",
    ReviewQuality.HARD: "Difficult to recall",
    ReviewQuality.GOOD: "Recalled with effort",
    ReviewQuality.EASY: "Perfect recall",
}


@dataclass(frozen=True)
class CardSchedulingState:
    """
    Scheduling attributes owned by a single flashcard.

    Attributes:
        easiness_factor: Interval growth multiplier, never below 1.3.
        repetitions: Consecutive ladder-advancing reviews since the last reset.
        interval: Days between last_review_date and next_review_date.
        review_count: Total reviews ever performed.
        correct_streak: Consecutive reviews graded GOOD or better.
        difficulty_rating: Display value, 5 - quality of the last review.
        last_review_date: When the card was last reviewed, if ever.
        next_review_date: When the card is next due.
    """

    next_review_date: datetime
    easiness_factor: float = INITIAL_EASINESS
    repetitions: int = 0
    interval: int = INITIAL_INTERVAL
    review_count: int = 0
    correct_streak: int = 0
    difficulty_rating: int = 0
    last_review_date: datetime | None = None

    @classmethod
    def initial(cls, created_at: datetime) -> "CardSchedulingState":
        """State of a freshly created card: due immediately."""
        return cls(next_review_date=created_at)

    @property
    def is_new(self) -> bool:
        return self.review_count == 0


@dataclass
class Card:
    """A flashcard and its scheduling state."""

    id: str
    deck_id: str
    front: str
    back: str
    created_at: datetime
    state: CardSchedulingState | None = None
    """Left as None to start from the initial state at created_at."""

    def __post_init__(self):
        if self.state is None:
            self.state = CardSchedulingState.initial(self.created_at)


@dataclass
class Deck:
    """A named collection of cards with a recomputed mastery score."""

    id: str
    name: str
    created_at: datetime
    subject: str = ""
    mastery: float = 0.0


@dataclass(frozen=True)
class StudySessionStats:
    """Read-only snapshot of what is waiting to be studied."""

    due_cards: int = 0
    new_cards: int = 0
    total_cards: int = 0
    reviewed_today: int = 0

    @property
    def has_cards_to_review(self) -> bool:
        return self.due_cards > 0 or self.new_cards > 0


@dataclass(frozen=True)
class StudyOverview:
    """Collection-wide totals across every deck."""

    total_decks: int = 0
    total_cards: int = 0
    average_mastery: float = 0.0
    deck_mastery: dict[str, float] = field(default_factory=dict)
    deck_card_counts: dict[str, int] = field(default_factory=dict)
    """Cards per deck id; decks without cards map to 0."""
