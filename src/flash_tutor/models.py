"""Data classes for the card domain model."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from flash_tutor.errors import PreconditionError, ValidationError

MIN_EASE = 1.3
MAX_EASE = 2.5
DEFAULT_EASE = 2.5
DEFAULT_INTERVAL = 1
MAX_INTERVAL = 36500  # keeps due_at far from datetime.max
GROWTH_FACTOR = 1.8
EASE_STEP_UP = 0.1
EASE_STEP_DOWN = 0.2
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
DEFAULT_DIFFICULTY = 3  # stands in for a missing difficulty when sorting


@dataclass(frozen=True)
class CardRecord:
    id: int
    front: str
    back: str
    created_at: datetime
    due_at: datetime
    last_reviewed_at: Optional[datetime] = None
    review_count: int = 0
    ease_factor: float = DEFAULT_EASE
    interval_days: int = DEFAULT_INTERVAL
    pronunciation: Optional[str] = None
    example: Optional[str] = None
    notes: Optional[str] = None
    difficulty: Optional[int] = None


class SortKey(Enum):
    ALPHABETICAL = "alphabetical"
    RECENTLY_CREATED = "recent"
    DIFFICULTY = "difficulty"


class Direction(Enum):
    FORWARD = 1
    BACKWARD = -1


def validate_text(front: str, back: str) -> None:
    if not front or not front.strip():
        raise ValidationError("Front text is required")
    if not back or not back.strip():
        raise ValidationError("Back text is required")


def validate_difficulty(difficulty: Optional[int]) -> None:
    if difficulty is None:
        return
    if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise ValidationError(
            f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}, got {difficulty}"
        )


def new_card(
    front: str,
    back: str,
    now: datetime,
    pronunciation: Optional[str] = None,
    example: Optional[str] = None,
    notes: Optional[str] = None,
    difficulty: Optional[int] = None,
) -> CardRecord:
    """Build a never-reviewed card that is due immediately.

    The id stays 0 until the store assigns one on insert.
    """
    validate_text(front, back)
    validate_difficulty(difficulty)
    return CardRecord(
        id=0,
        front=front.strip(),
        back=back.strip(),
        created_at=now,
        due_at=now,
        pronunciation=pronunciation or None,
        example=example or None,
        notes=notes or None,
        difficulty=difficulty,
    )


def check_invariants(card: CardRecord) -> None:
    """Raise PreconditionError if the card is not in a valid scheduling state."""
    if not MIN_EASE <= card.ease_factor <= MAX_EASE:
        raise PreconditionError(
            f"Card {card.id}: ease factor {card.ease_factor} outside [{MIN_EASE}, {MAX_EASE}]"
        )
    if card.interval_days < 1:
        raise PreconditionError(f"Card {card.id}: interval {card.interval_days} is below 1 day")
    if card.review_count < 0:
        raise PreconditionError(f"Card {card.id}: negative review count {card.review_count}")
    if not card.front.strip() or not card.back.strip():
        raise PreconditionError(f"Card {card.id}: front and back text are required")
