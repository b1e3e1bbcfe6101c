"""Seed the database with a starter deck of French vocabulary."""
import json
from datetime import datetime
from pathlib import Path

from flash_tutor.db import get_connection
from flash_tutor.models import new_card
from flash_tutor.storage import INSERT_CARD_SQL, card_values

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database already holds any cards."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM cards").fetchone()[0]
    conn.close()
    return count > 0


def seed_cards(db_path: str, now: datetime) -> int:
    """Insert the starter deck from starter_deck.json, all due at ``now``."""
    data = json.loads((CONTENT_DIR / "starter_deck.json").read_text(encoding="utf-8"))
    conn = get_connection(db_path)
    for entry in data["cards"]:
        card = new_card(
            entry["front"],
            entry["back"],
            now,
            pronunciation=entry.get("pronunciation"),
            example=entry.get("example"),
            notes=entry.get("notes"),
            difficulty=entry.get("difficulty"),
        )
        conn.execute(INSERT_CARD_SQL, card_values(card))
    conn.commit()
    conn.close()
    return len(data["cards"])


def seed_all(db_path: str, now: datetime) -> None:
    if is_seeded(db_path):
        return
    seed_cards(db_path, now)
