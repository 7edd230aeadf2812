"""Exception hierarchy for the scheduling engine."""


class NoeticaError(Exception):
    """Base class for every error raised by Noetica."""


class StorageError(NoeticaError):
    """
    A repository operation failed (store unavailable, write conflict, corrupt file).

    Attributes:
        transient: True when retrying the same operation may succeed.
    """

    def __init__(self, message: str, transient: bool = False):
        super().__init__(message)
        self.transient = transient


class InvalidQuality(NoeticaError, ValueError):
    """A raw review grade could not be mapped onto ReviewQuality."""

    def __init__(self, value: object):
        super().__init__(
            f"Invalid review quality {value!r}: expected 0-3 or one of again, hard, good, easy"
        )
        self.value = value


class CardNotFound(NoeticaError, LookupError):
    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class DeckNotFound(NoeticaError, LookupError):
    def __init__(self, deck_id: str):
        super().__init__(f"Deck not found: {deck_id}")
        self.deck_id = deck_id
