# Domain Package
from .errors import CardNotFound, DeckNotFound, InvalidQuality, NoeticaError, StorageError
from .models import (
    Card,
    CardSchedulingState,
    Deck,
    ReviewQuality,
    StudyOverview,
    StudySessionStats,
)
from .ports import CardRepository, Clock

__all__ = [
    "Card",
    "CardNotFound",
    "CardRepository",
    "CardSchedulingState",
    "Clock",
    "Deck",
    "DeckNotFound",
    "InvalidQuality",
    "NoeticaError",
    "ReviewQuality",
    "StorageError",
    "StudyOverview",
    "StudySessionStats",
]
