# Application Package
from .mastery import MasteryAggregator, compute_mastery, is_mastered
from .review_service import ReviewOutcome, ReviewService
from .scheduler import parse_quality, schedule
from .selector import DueSetSelector
from .session_stats import SessionStatsService, start_of_day

__all__ = [
    "DueSetSelector",
    "MasteryAggregator",
    "ReviewOutcome",
    "ReviewService",
    "SessionStatsService",
    "compute_mastery",
    "is_mastered",
    "parse_quality",
    "schedule",
    "start_of_day",
]
