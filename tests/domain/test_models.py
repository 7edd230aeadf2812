from datetime import datetime, timezone

from noetica.domain.models import (
    Card,
    CardSchedulingState,
    ReviewQuality,
    StudySessionStats,
)

CREATED = datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)


def test_review_quality_is_ordered_and_integer_valued():
    assert [int(q) for q in ReviewQuality] == [0, 1, 2, 3]
    assert ReviewQuality.AGAIN < ReviewQuality.HARD < ReviewQuality.GOOD < ReviewQuality.EASY


def test_review_quality_labels():
    assert ReviewQuality.AGAIN.title == "Again"
    assert ReviewQuality.EASY.title == "Easy"
    assert ReviewQuality.HARD.description == "Difficult to recall"
    assert ReviewQuality.GOOD.description == "Recalled with effort"


def test_initial_state_is_due_at_creation():
    state = CardSchedulingState.initial(CREATED)

    assert state.easiness_factor == 2.5
    assert state.repetitions == 0
    assert state.interval == 1
    assert state.review_count == 0
    assert state.correct_streak == 0
    assert state.last_review_date is None
    assert state.next_review_date == CREATED
    assert state.is_new


def test_card_defaults_state_from_creation_time():
    card = Card(id="c1", deck_id="d1", front="F", back="B", created_at=CREATED)
    assert card.state == CardSchedulingState.initial(CREATED)


def test_card_with_explicit_none_state_gets_initial_state():
    card = Card(id="c1", deck_id="d1", front="F", back="B", created_at=CREATED, state=None)
    assert card.state is not None
    assert card.state.is_new
    assert card.state.next_review_date == CREATED


def test_card_keeps_given_state():
    state = CardSchedulingState.initial(CREATED)
    card = Card(id="c1", deck_id="d1", front="F", back="B", created_at=CREATED, state=state)
    assert card.state is state


def test_session_stats_has_cards_to_review():
    assert not StudySessionStats().has_cards_to_review
    assert StudySessionStats(due_cards=1).has_cards_to_review
    assert StudySessionStats(new_cards=2, total_cards=2).has_cards_to_review
    assert not StudySessionStats(total_cards=5, reviewed_today=5).has_cards_to_review
