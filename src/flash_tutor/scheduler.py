"""Two-button spaced repetition scheduling."""
import math
from dataclasses import replace
from datetime import datetime, timedelta

from flash_tutor.models import (
    CardRecord, EASE_STEP_DOWN, EASE_STEP_UP, GROWTH_FACTOR, MAX_EASE, MAX_INTERVAL, MIN_EASE,
    check_invariants,
)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, with .5 going away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def apply_review(card: CardRecord, recalled: bool, now: datetime) -> CardRecord:
    """Calculate the card's next scheduling state after one review.

    Args:
        card: Card being rated. Must already satisfy the card invariants.
        recalled: True for "Memorized", False for "No".
        now: Time of the review, supplied by the caller.

    Returns:
        A new CardRecord; the input card is left untouched and nothing is persisted.
    """
    check_invariants(card)

    if recalled:
        new_interval = min(MAX_INTERVAL, max(1, round_half_away(card.interval_days * GROWTH_FACTOR)))
        new_ease = min(MAX_EASE, card.ease_factor + EASE_STEP_UP)
    else:
        # Lapse: back to tomorrow
        new_interval = 1
        new_ease = max(MIN_EASE, card.ease_factor - EASE_STEP_DOWN)

    return replace(
        card,
        interval_days=new_interval,
        ease_factor=new_ease,
        due_at=now + timedelta(days=new_interval),
        last_reviewed_at=now,
        review_count=card.review_count + 1,
    )
