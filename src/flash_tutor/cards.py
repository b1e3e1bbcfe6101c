"""Card management: create, edit and delete cards in the store."""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from flash_tutor.errors import CardNotFound, ValidationError
from flash_tutor.models import CardRecord, new_card, validate_difficulty, validate_text
from flash_tutor.storage import CardStore

logger = logging.getLogger(__name__)

# Scheduling fields are owned by the scheduler and never editable here.
EDITABLE_FIELDS = frozenset({"front", "back", "pronunciation", "example", "notes", "difficulty"})


async def create_card(store: CardStore, front: str, back: str, now: datetime, **optional) -> CardRecord:
    card = new_card(front, back, now, **optional)
    card_id = await store.insert(card)
    logger.info("Created card %d", card_id)
    return replace(card, id=card_id)


async def edit_card(store: CardStore, card_id: int, **changes) -> CardRecord:
    """Update a card's text and annotations, leaving its schedule alone."""
    illegal = set(changes) - EDITABLE_FIELDS
    if illegal:
        raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(illegal))}")
    card = await store.get_by_id(card_id)
    if card is None:
        raise CardNotFound(card_id)

    for field in ("front", "back"):
        if field in changes:
            changes[field] = (changes[field] or "").strip()
    for field in ("pronunciation", "example", "notes"):
        if field in changes:
            changes[field] = changes[field] or None

    updated = replace(card, **changes)
    validate_text(updated.front, updated.back)
    validate_difficulty(updated.difficulty)
    await store.update(updated)
    logger.info("Updated card %d", card_id)
    return updated


async def delete_cards(store: CardStore, ids: Iterable[int]) -> None:
    """Delete cards by id; ids that don't exist are skipped."""
    ids = list(ids)
    if not ids:
        return
    await store.delete_many(ids)
    logger.info("Deleted %d card(s)", len(ids))
