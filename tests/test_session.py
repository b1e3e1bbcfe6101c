# tests/test_session.py
import asyncio
from datetime import timedelta

import pytest

from flash_tutor.catalog import due_cards
from flash_tutor.errors import InvalidStateError, StorageError
from flash_tutor.models import Direction
from flash_tutor.session import ReviewSession, SessionState
from flash_tutor.storage import InMemoryCardStore


class FailingUpdateStore(InMemoryCardStore):
    async def update(self, card):
        raise StorageError("disk full")


class FailingReloadStore(InMemoryCardStore):
    """Update commits, then the refresh read fails."""

    async def get_all(self):
        raise StorageError("database is locked")


class BlockingUpdateStore(InMemoryCardStore):
    """Update never completes until released."""

    def __init__(self, cards=()):
        super().__init__(cards)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def update(self, card):
        self.started.set()
        await self.release.wait()
        await super().update(card)


@pytest.fixture
def three_due(make_card, now):
    return [
        make_card(1, front="A", back="a", due_at=now - timedelta(hours=3)),
        make_card(2, front="B", back="b", due_at=now - timedelta(hours=2)),
        make_card(3, front="C", back="c", due_at=now - timedelta(hours=1)),
    ]


def new_session(store, now):
    return ReviewSession(store, clock=lambda: now)


def test_start_empty_is_idle(now):
    session = new_session(InMemoryCardStore(), now)
    assert session.start([]) is SessionState.IDLE
    assert session.current_card is None
    assert session.position is None
    assert session.total == 0


def test_start_presents_first_card_hidden(three_due, now):
    session = new_session(InMemoryCardStore(three_due), now)
    assert session.start(three_due) is SessionState.PRESENTING
    assert session.current_card.id == 1
    assert session.position == 0
    assert session.total == 3
    assert session.revealed is False


def test_start_takes_a_snapshot(three_due, now):
    session = new_session(InMemoryCardStore(three_due), now)
    due = list(three_due)
    session.start(due)
    due.clear()
    assert session.total == 3


def test_flip_toggles_reveal(three_due, now):
    session = new_session(InMemoryCardStore(three_due), now)
    session.start(three_due)
    assert session.flip() is True
    assert session.revealed is True
    assert session.flip() is False


def test_advance_wraps_forward_from_last(make_card, now):
    """Scenario D: last card of two wraps to the first."""
    cards = [make_card(1, front="A", back="a"), make_card(2, front="B", back="b")]
    session = new_session(InMemoryCardStore(cards), now)
    session.start(cards)
    session.advance(Direction.FORWARD)
    assert session.position == 1
    session.advance(Direction.FORWARD)
    assert session.position == 0
    assert session.current_card.id == 1


def test_advance_wraps_backward_from_first(three_due, now):
    session = new_session(InMemoryCardStore(three_due), now)
    session.start(three_due)
    card = session.advance(Direction.BACKWARD)
    assert session.position == 2
    assert card.id == 3


def test_advance_hides_answer(three_due, now):
    session = new_session(InMemoryCardStore(three_due), now)
    session.start(three_due)
    session.flip()
    session.advance()
    assert session.revealed is False


@pytest.mark.parametrize("operation", ["flip", "advance"])
def test_navigation_when_idle_raises(now, operation):
    session = new_session(InMemoryCardStore(), now)
    session.start([])
    with pytest.raises(InvalidStateError):
        getattr(session, operation)()


@pytest.mark.asyncio
async def test_rate_when_idle_raises(now):
    session = new_session(InMemoryCardStore(), now)
    with pytest.raises(InvalidStateError):
        await session.rate(True)


@pytest.mark.asyncio
async def test_rate_removes_card_and_keeps_cursor_in_bounds(three_due, now):
    """Scenario C: rating A pushes it out; the session moves on to B."""
    store = InMemoryCardStore(three_due)
    session = new_session(store, now)
    session.start(due_cards(await store.get_all(), now))
    session.flip()
    updated = await session.rate(True)
    assert updated.id == 1
    assert updated.due_at == now + timedelta(days=2)
    assert [c.id for c in session.cards] == [2, 3]
    assert session.position == 0
    assert session.current_card.id == 2
    assert session.revealed is False
    stored = await store.get_by_id(1)
    assert stored == updated


@pytest.mark.asyncio
async def test_rate_on_last_position_clamps_cursor(three_due, now):
    store = InMemoryCardStore(three_due)
    session = new_session(store, now)
    session.start(three_due)
    session.advance(Direction.BACKWARD)
    await session.rate(False)
    assert [c.id for c in session.cards] == [1, 2]
    assert session.position == 1
    assert session.current_card.id == 2


@pytest.mark.asyncio
async def test_rating_every_card_ends_idle(three_due, now):
    store = InMemoryCardStore(three_due)
    session = new_session(store, now)
    session.start(three_due)
    for _ in range(3):
        await session.rate(True)
    assert session.state is SessionState.IDLE
    assert session.reviewed_count == 3
    assert session.current_card is None
    with pytest.raises(InvalidStateError):
        session.flip()


@pytest.mark.asyncio
async def test_rate_picks_up_cards_that_became_due_elsewhere(three_due, make_card, now):
    store = InMemoryCardStore(three_due)
    session = new_session(store, now)
    session.start(three_due)
    new_id = await store.insert(make_card(0, front="D", back="d", due_at=now - timedelta(days=1)))
    await session.rate(True)
    assert [c.id for c in session.cards] == [new_id, 2, 3]


@pytest.mark.asyncio
async def test_storage_failure_leaves_session_on_card(three_due, now):
    store = FailingUpdateStore(three_due)
    session = new_session(store, now)
    session.start(three_due)
    session.flip()
    with pytest.raises(StorageError):
        await session.rate(True)
    assert session.current_card == three_due[0]
    assert session.total == 3
    assert session.revealed is True
    assert session.reviewed_count == 0


@pytest.mark.asyncio
async def test_cancelled_rate_does_not_touch_local_state(three_due, now):
    store = BlockingUpdateStore(three_due)
    session = new_session(store, now)
    session.start(three_due)
    task = asyncio.create_task(session.rate(True))
    await store.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert session.current_card == three_due[0]
    assert session.total == 3
    assert (await store.get_by_id(1)).review_count == 0
    # The session accepts a fresh rating afterwards
    store.release.set()
    await session.rate(False)
    assert session.reviewed_count == 1


@pytest.mark.asyncio
async def test_concurrent_rate_is_rejected(three_due, now):
    store = BlockingUpdateStore(three_due)
    session = new_session(store, now)
    session.start(three_due)
    first = asyncio.create_task(session.rate(True))
    await store.started.wait()
    with pytest.raises(InvalidStateError):
        await session.rate(False)
    store.release.set()
    await first
    assert session.reviewed_count == 1


@pytest.mark.asyncio
async def test_reload_rebuilds_from_store(three_due, make_card, now):
    store = InMemoryCardStore(three_due + [make_card(4, due_at=now + timedelta(days=3))])
    session = new_session(store, now)
    state = await session.reload()
    assert state is SessionState.PRESENTING
    assert [c.id for c in session.cards] == [1, 2, 3]


@pytest.mark.asyncio
async def test_reload_failure_after_commit_keeps_snapshot(three_due, now):
    store = FailingReloadStore(three_due)
    session = new_session(store, now)
    session.start(three_due)
    session.flip()
    with pytest.raises(StorageError):
        await session.rate(True)
    assert session.current_card == three_due[0]
    assert session.total == 3
    assert session.reviewed_count == 0
    stored = await store.get_by_id(1)
    assert stored.review_count == 1
    assert stored.due_at == now + timedelta(days=2)
