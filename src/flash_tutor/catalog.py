"""Due-set selection, search, sorting and batch selection over the card catalog."""
from datetime import datetime
from typing import Iterable, Sequence

from flash_tutor.models import CardRecord, DEFAULT_DIFFICULTY, SortKey


def due_cards(catalog: Iterable[CardRecord], now: datetime) -> list[CardRecord]:
    """Cards with due_at at or before now, oldest due first, ties by id."""
    due = [card for card in catalog if card.due_at <= now]
    return sorted(due, key=lambda card: (card.due_at, card.id))


def due_count(catalog: Iterable[CardRecord], now: datetime) -> int:
    return len(due_cards(catalog, now))


def filter_cards(catalog: Sequence[CardRecord], query: str) -> list[CardRecord]:
    """Case-insensitive substring match on front or back text, order preserved."""
    if not query or not query.strip():
        return list(catalog)
    needle = query.casefold()
    return [
        card for card in catalog
        if needle in card.front.casefold() or needle in card.back.casefold()
    ]


def sort_cards(catalog: Iterable[CardRecord], key: SortKey) -> list[CardRecord]:
    if key is SortKey.ALPHABETICAL:
        return sorted(catalog, key=lambda card: card.front)
    if key is SortKey.RECENTLY_CREATED:
        return sorted(catalog, key=lambda card: card.created_at, reverse=True)
    if key is SortKey.DIFFICULTY:
        return sorted(
            catalog,
            key=lambda card: DEFAULT_DIFFICULTY if card.difficulty is None else card.difficulty,
        )
    raise ValueError(f"Unknown sort key: {key!r}")


def browse(catalog: Sequence[CardRecord], query: str = "", key: SortKey = SortKey.RECENTLY_CREATED) -> list[CardRecord]:
    """Search then sort, as the card management list shows them."""
    return sort_cards(filter_cards(catalog, query), key)


# --- Batch selection ---


def select_batch(selection: frozenset, ids: Iterable[int]) -> frozenset:
    return selection | frozenset(ids)


def deselect_batch(selection: frozenset, ids: Iterable[int]) -> frozenset:
    return selection - frozenset(ids)


def toggle_selection(selection: frozenset, card_id: int) -> frozenset:
    if card_id in selection:
        return selection - {card_id}
    return selection | {card_id}


def clear_selection() -> frozenset:
    return frozenset()


def delete_selected(
    catalog: Iterable[CardRecord], selected_ids: Iterable[int],
) -> tuple[list[CardRecord], frozenset]:
    """Drop the selected cards; ids not in the catalog are ignored.

    Returns the remaining cards and an emptied selection.
    """
    doomed = frozenset(selected_ids)
    remaining = [card for card in catalog if card.id not in doomed]
    return remaining, clear_selection()
