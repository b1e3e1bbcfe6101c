from datetime import datetime, timezone

import pytest

from flash_tutor.models import CardRecord

NOW = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_cards.db")
    return db_path


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_card():
    """Build a CardRecord with sensible defaults; override any field by keyword."""
    def _make(card_id=1, front="bonjour", back="hello", **fields):
        fields.setdefault("created_at", NOW)
        fields.setdefault("due_at", NOW)
        return CardRecord(id=card_id, front=front, back=back, **fields)
    return _make
