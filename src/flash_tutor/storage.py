"""Card storage: the async store interface and its SQLite and in-memory backends."""
import asyncio
import logging
import sqlite3
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Protocol

from flash_tutor.db import DEFAULT_DB_PATH, get_connection
from flash_tutor.errors import CardNotFound, StorageError
from flash_tutor.models import CardRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CardStore(Protocol):
    async def get_all(self) -> list[CardRecord]: ...

    async def get_by_id(self, card_id: int) -> Optional[CardRecord]: ...

    async def insert(self, card: CardRecord) -> int: ...

    async def update(self, card: CardRecord) -> None: ...

    async def delete_many(self, ids: Iterable[int]) -> None: ...


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def row_to_card(row: sqlite3.Row) -> CardRecord:
    return CardRecord(
        id=row["id"],
        front=row["front"],
        back=row["back"],
        created_at=_parse_time(row["created_at"]),
        due_at=_parse_time(row["due_at"]),
        last_reviewed_at=_parse_time(row["last_reviewed_at"]),
        review_count=row["review_count"],
        ease_factor=row["ease_factor"],
        interval_days=row["interval_days"],
        pronunciation=row["pronunciation"],
        example=row["example"],
        notes=row["notes"],
        difficulty=row["difficulty"],
    )


INSERT_CARD_SQL = """INSERT INTO cards
(front, back, created_at, last_reviewed_at, review_count, ease_factor,
 interval_days, due_at, pronunciation, example, notes, difficulty)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"""


def card_values(card: CardRecord) -> tuple:
    return (
        card.front,
        card.back,
        card.created_at.isoformat(),
        card.last_reviewed_at.isoformat() if card.last_reviewed_at else None,
        card.review_count,
        card.ease_factor,
        card.interval_days,
        card.due_at.isoformat(),
        card.pronunciation,
        card.example,
        card.notes,
        card.difficulty,
    )


class SQLiteCardStore:
    """CardStore backed by the ``cards`` table.

    Each call opens its own connection and runs in a worker thread, so the
    event loop is never blocked on disk I/O.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as e:
            logger.error("Card store operation %s failed: %s", func.__name__, e)
            raise StorageError(f"Card store failure: {e}") from e

    def _get_all(self) -> list[CardRecord]:
        conn = get_connection(self.db_path)
        rows = conn.execute("SELECT * FROM cards ORDER BY id").fetchall()
        conn.close()
        return [row_to_card(r) for r in rows]

    def _get_by_id(self, card_id: int) -> Optional[CardRecord]:
        conn = get_connection(self.db_path)
        row = conn.execute("SELECT * FROM cards WHERE id = ?", (card_id,)).fetchone()
        conn.close()
        return row_to_card(row) if row else None

    def _insert(self, card: CardRecord) -> int:
        conn = get_connection(self.db_path)
        cursor = conn.execute(INSERT_CARD_SQL, card_values(card))
        conn.commit()
        card_id = cursor.lastrowid
        conn.close()
        return card_id

    def _update(self, card: CardRecord) -> int:
        conn = get_connection(self.db_path)
        cursor = conn.execute(
            """UPDATE cards SET front=?, back=?, created_at=?, last_reviewed_at=?,
            review_count=?, ease_factor=?, interval_days=?, due_at=?,
            pronunciation=?, example=?, notes=?, difficulty=?
            WHERE id=?""",
            card_values(card) + (card.id,),
        )
        conn.commit()
        changed = cursor.rowcount
        conn.close()
        return changed

    def _delete_many(self, ids: list[int]) -> None:
        conn = get_connection(self.db_path)
        conn.executemany("DELETE FROM cards WHERE id = ?", [(i,) for i in ids])
        conn.commit()
        conn.close()

    async def get_all(self) -> list[CardRecord]:
        return await self._run(self._get_all)

    async def get_by_id(self, card_id: int) -> Optional[CardRecord]:
        return await self._run(self._get_by_id, card_id)

    async def insert(self, card: CardRecord) -> int:
        return await self._run(self._insert, card)

    async def update(self, card: CardRecord) -> None:
        changed = await self._run(self._update, card)
        if changed == 0:
            raise CardNotFound(card.id)

    async def delete_many(self, ids: Iterable[int]) -> None:
        ids = list(ids)
        if ids:
            await self._run(self._delete_many, ids)


class InMemoryCardStore:
    """Dict-backed CardStore for tests and throwaway sessions."""

    def __init__(self, cards: Iterable[CardRecord] = ()):
        self._cards: dict[int, CardRecord] = {}
        self._next_id = 1
        for card in cards:
            self._put(card)

    def _put(self, card: CardRecord) -> int:
        if card.id == 0:
            card = replace(card, id=self._next_id)
        self._cards[card.id] = card
        self._next_id = max(self._next_id, card.id + 1)
        return card.id

    async def get_all(self) -> list[CardRecord]:
        return [self._cards[i] for i in sorted(self._cards)]

    async def get_by_id(self, card_id: int) -> Optional[CardRecord]:
        return self._cards.get(card_id)

    async def insert(self, card: CardRecord) -> int:
        return self._put(replace(card, id=0))

    async def update(self, card: CardRecord) -> None:
        if card.id not in self._cards:
            raise CardNotFound(card.id)
        self._cards[card.id] = card

    async def delete_many(self, ids: Iterable[int]) -> None:
        for card_id in ids:
            self._cards.pop(card_id, None)
