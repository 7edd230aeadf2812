"""
YAML Card Repository — Infrastructure adapter for a single-file store.

Implements CardRepository on top of one YAML document:

    decks:
      - id: deck_01H...
        name: Biology
        ...
    cards:
      - id: card_01H...
        deck_id: deck_01H...
        state: {easiness_factor: 2.5, ...}

The file is read lazily and re-read whenever another writer has replaced
it. persist() stages changes in memory; commit() merges the staged items
on top of the current file contents and rewrites it atomically.
"""

import logging
import os
import tempfile
from dataclasses import asdict, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from noetica.domain.errors import StorageError
from noetica.domain.models import Card, CardSchedulingState, Deck
from noetica.domain.ports import CardRepository

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("next_review_date", "last_review_date")


class YamlCardRepository(CardRepository):
    """
    Stores decks and cards in a YAML file.

    A missing file is treated as an empty store and created on first commit.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._decks: dict[str, Deck] | None = None
        self._cards: dict[str, Card] = {}
        self._loaded_stamp: tuple[int, int, int] | None = None
        self._staged_decks: dict[str, Deck] = {}
        self._staged_cards: dict[str, Card] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def fetch_cards(self, deck_id: str | None = None) -> list[Card]:
        return [replace(c) for c in self._all_cards() if _in_deck(c, deck_id)]

    async def fetch_cards_by_due_date(
        self, deck_id: str | None = None, *, as_of: datetime
    ) -> list[Card]:
        return [
            replace(c)
            for c in self._all_cards()
            if _in_deck(c, deck_id) and c.state.next_review_date <= as_of
        ]

    async def fetch_cards_by_review_count(
        self, deck_id: str | None = None, *, review_count: int
    ) -> list[Card]:
        return [
            replace(c)
            for c in self._all_cards()
            if _in_deck(c, deck_id) and c.state.review_count == review_count
        ]

    async def get_card(self, card_id: str) -> Card | None:
        self._ensure_loaded()
        card = self._cards.get(card_id)
        return replace(card) if card else None

    async def get_deck(self, deck_id: str) -> Deck | None:
        decks = self._ensure_loaded()
        deck = decks.get(deck_id)
        return replace(deck) if deck else None

    async def fetch_decks(self) -> list[Deck]:
        return [replace(d) for d in self._ensure_loaded().values()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def persist(self, item: Card | Deck) -> None:
        decks = self._ensure_loaded()
        if isinstance(item, Card):
            self._staged_cards[item.id] = replace(item)
            self._cards[item.id] = replace(item)
        else:
            self._staged_decks[item.id] = replace(item)
            decks[item.id] = replace(item)

    async def commit(self) -> None:
        if not self._staged_decks and not self._staged_cards:
            return

        # Reloads (and re-applies staged items) if another writer got there first
        decks = self._ensure_loaded()

        document = {
            "decks": [_deck_to_dict(d) for d in decks.values()],
            "cards": [_card_to_dict(c) for c in self._cards.values()],
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    yaml.safe_dump(document, fh, sort_keys=False, allow_unicode=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}", transient=True) from e

        self._loaded_stamp = self._stamp()
        self._staged_decks.clear()
        self._staged_cards.clear()
        logger.debug(f"Committed {len(decks)} decks, {len(self._cards)} cards to {self.path}")

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _all_cards(self) -> list[Card]:
        self._ensure_loaded()
        return list(self._cards.values())

    def _ensure_loaded(self) -> dict[str, Deck]:
        stamp = self._stamp()
        if self._decks is not None and stamp == self._loaded_stamp:
            return self._decks

        decks, cards = self._read() if stamp is not None else ({}, {})
        if self._decks is not None:
            logger.info(f"{self.path} changed on disk; reloaded")

        # Staged writes survive a reload and win over what is on disk
        decks.update(self._staged_decks)
        cards.update(self._staged_cards)

        self._decks = decks
        self._cards = cards
        self._loaded_stamp = stamp
        return self._decks

    def _stamp(self) -> tuple[int, int, int] | None:
        """Identity of the file on disk; commit() replaces the inode each time."""
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Could not stat {self.path}: {e}", transient=True) from e
        return (st.st_ino, st.st_mtime_ns, st.st_size)

    def _read(self) -> tuple[dict[str, Deck], dict[str, Card]]:
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except OSError as e:
            raise StorageError(f"Could not read {self.path}: {e}", transient=True) from e
        except yaml.YAMLError as e:
            raise StorageError(f"Corrupt store {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise StorageError(f"Corrupt store {self.path}: top level must be a mapping")

        try:
            decks = {d["id"]: _deck_from_dict(d) for d in raw.get("decks") or []}
            cards = {c["id"]: _card_from_dict(c) for c in raw.get("cards") or []}
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Corrupt record in {self.path}: {e}") from e

        logger.debug(f"Loaded {len(decks)} decks, {len(cards)} cards from {self.path}")
        return decks, cards


def _in_deck(card: Card, deck_id: str | None) -> bool:
    return deck_id is None or card.deck_id == deck_id


def _deck_to_dict(deck: Deck) -> dict[str, Any]:
    data = asdict(deck)
    data["created_at"] = deck.created_at.isoformat()
    return data


def _deck_from_dict(data: dict[str, Any]) -> Deck:
    return Deck(
        id=str(data["id"]),
        name=str(data["name"]),
        created_at=_parse_datetime(data["created_at"]),
        subject=str(data.get("subject") or ""),
        mastery=float(data.get("mastery", 0.0)),
    )


def _card_to_dict(card: Card) -> dict[str, Any]:
    state = asdict(card.state)
    for key in _DATETIME_FIELDS:
        if state[key] is not None:
            state[key] = state[key].isoformat()
    return {
        "id": card.id,
        "deck_id": card.deck_id,
        "front": card.front,
        "back": card.back,
        "created_at": card.created_at.isoformat(),
        "state": state,
    }


def _card_from_dict(data: dict[str, Any]) -> Card:
    created_at = _parse_datetime(data["created_at"])
    raw_state = dict(data.get("state") or {})
    for key in _DATETIME_FIELDS:
        if raw_state.get(key) is not None:
            raw_state[key] = _parse_datetime(raw_state[key])
    raw_state.setdefault("next_review_date", created_at)

    return Card(
        id=str(data["id"]),
        deck_id=str(data["deck_id"]),
        front=str(data.get("front", "")),
        back=str(data.get("back", "")),
        created_at=created_at,
        state=CardSchedulingState(**raw_state),
    )


def _parse_datetime(value: Any) -> datetime:
    # Hand-edited files may hold unquoted timestamps, which YAML already parses.
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(value)
    # Timestamps without an offset are taken as UTC so they compare with aware clocks
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
