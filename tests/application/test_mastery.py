import pytest

from noetica.application.mastery import MasteryAggregator, compute_mastery, is_mastered
from noetica.domain.errors import DeckNotFound


def test_is_mastered_rules(card_factory):
    assert not is_mastered(card_factory("new"))
    assert is_mastered(card_factory("streak", review_count=2, correct_streak=1, easiness_factor=1.5))
    assert is_mastered(card_factory("easy", review_count=1, correct_streak=0, easiness_factor=2.5))
    assert not is_mastered(
        card_factory("struggling", review_count=2, correct_streak=0, easiness_factor=1.5)
    )
    # Unreviewed cards never count, even with a high easiness factor
    assert not is_mastered(card_factory("untouched", easiness_factor=3.0, correct_streak=1))


def test_compute_mastery_empty_is_zero():
    assert compute_mastery([]) == 0.0


@pytest.mark.asyncio
async def test_recompute_mastery_writes_deck(repo, deck, card_factory):
    await repo.persist(card_factory("m", review_count=5, correct_streak=3, easiness_factor=2.8))
    await repo.persist(card_factory("s", review_count=2, correct_streak=0, easiness_factor=1.5))
    await repo.persist(card_factory("n1"))
    await repo.persist(card_factory("n2"))
    await repo.persist(card_factory("other", deck_id="deck_b", review_count=1, correct_streak=1))

    mastery = await MasteryAggregator(repo).recompute_mastery(deck.id)

    assert mastery == 0.25
    stored = await repo.get_deck(deck.id)
    assert stored.mastery == 0.25


@pytest.mark.asyncio
async def test_recompute_mastery_empty_deck(repo, deck):
    deck_before = await repo.get_deck(deck.id)
    deck_before.mastery = 0.9
    await repo.persist(deck_before)

    assert await MasteryAggregator(repo).recompute_mastery(deck.id) == 0.0
    assert (await repo.get_deck(deck.id)).mastery == 0.0


@pytest.mark.asyncio
async def test_recompute_mastery_is_idempotent(repo, deck, card_factory):
    await repo.persist(card_factory("a", review_count=1, correct_streak=1))
    await repo.persist(card_factory("b"))
    await repo.persist(card_factory("c", review_count=3))

    aggregator = MasteryAggregator(repo)
    first = await aggregator.recompute_mastery(deck.id)
    second = await aggregator.recompute_mastery(deck.id)

    assert first == second
    assert 0.0 <= first <= 1.0


@pytest.mark.asyncio
async def test_recompute_mastery_unknown_deck(repo):
    with pytest.raises(DeckNotFound):
        await MasteryAggregator(repo).recompute_mastery("missing")
