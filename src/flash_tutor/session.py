"""Review session navigation: current card, reveal state, wraparound and rating."""
import logging
from enum import Enum
from typing import Optional, Sequence

from flash_tutor.catalog import due_cards
from flash_tutor.errors import InvalidStateError
from flash_tutor.models import CardRecord, Direction
from flash_tutor.scheduler import apply_review
from flash_tutor.storage import CardStore, Clock, utc_now

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    PRESENTING = "presenting"


class ReviewSession:
    """Walks the user through a snapshot of due cards.

    The list never "finishes": navigation wraps in both directions, and the
    session only returns to IDLE when rating leaves no card due. One caller
    drives a session at a time.
    """

    def __init__(self, store: CardStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock
        self._cards: list[CardRecord] = []
        self._cursor = 0
        self._revealed = False
        self._rating = False
        self.reviewed_count = 0

    # --- Read-only state ---

    @property
    def state(self) -> SessionState:
        return SessionState.PRESENTING if self._cards else SessionState.IDLE

    @property
    def current_card(self) -> Optional[CardRecord]:
        return self._cards[self._cursor] if self._cards else None

    @property
    def revealed(self) -> bool:
        return self._revealed

    @property
    def position(self) -> Optional[int]:
        return self._cursor if self._cards else None

    @property
    def total(self) -> int:
        return len(self._cards)

    @property
    def cards(self) -> tuple[CardRecord, ...]:
        return tuple(self._cards)

    # --- Transitions ---

    def start(self, due_list: Sequence[CardRecord]) -> SessionState:
        self._cards = list(due_list)
        self._cursor = 0
        self._revealed = False
        self.reviewed_count = 0
        return self.state

    async def reload(self) -> SessionState:
        """Start over from the store's current due set."""
        catalog = await self.store.get_all()
        return self.start(due_cards(catalog, self.clock()))

    def _require_presenting(self, operation: str) -> None:
        if not self._cards:
            raise InvalidStateError(f"Cannot {operation}: no cards are due")

    def flip(self) -> bool:
        self._require_presenting("flip")
        self._revealed = not self._revealed
        return self._revealed

    def advance(self, direction: Direction = Direction.FORWARD) -> CardRecord:
        self._require_presenting("advance")
        self._cursor = (self._cursor + direction.value) % len(self._cards)
        self._revealed = False
        return self._cards[self._cursor]

    async def rate(self, recalled: bool) -> CardRecord:
        """Schedule the current card, commit it and re-derive the due list.

        Local state only changes once the commit and the reload have both
        succeeded; a StorageError or a cancellation leaves the session on the
        card that was being rated.
        """
        self._require_presenting("rate")
        if self._rating:
            raise InvalidStateError("Cannot rate: a rating is already being saved")
        self._rating = True
        try:
            now = self.clock()
            updated = apply_review(self.current_card, recalled, now)
            await self.store.update(updated)
            logger.info(
                "Card %d rated %s: next due %s (interval %d, ease %.2f)",
                updated.id, "remembered" if recalled else "forgotten",
                updated.due_at.isoformat(), updated.interval_days, updated.ease_factor,
            )
            new_due = due_cards(await self.store.get_all(), now)
        finally:
            self._rating = False

        previous = self._cursor
        self._cards = new_due
        self._cursor = min(previous, len(new_due) - 1) if new_due else 0
        self._revealed = False
        self.reviewed_count += 1
        if not new_due:
            logger.info("Review session complete: %d cards rated", self.reviewed_count)
        return updated
