"""Daily review reminder check."""
import logging
from typing import Protocol

from flash_tutor.catalog import due_count
from flash_tutor.errors import StorageError
from flash_tutor.settings import ReminderSettings
from flash_tutor.storage import CardStore, Clock, utc_now

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, due_count: int) -> None: ...


class LoggingNotifier:
    """Notifier that writes the reminder to the log instead of the OS."""

    def notify(self, due_count: int) -> None:
        noun = "card" if due_count == 1 else "cards"
        logger.warning("Time to review: %d %s due", due_count, noun)


async def check_due_reminder(
    store: CardStore,
    notifier: Notifier,
    clock: Clock = utc_now,
    settings: ReminderSettings = None,
) -> int:
    """Count due cards and notify if reminders are on and anything is due.

    Returns the due count whether or not a notification went out.
    """
    settings = settings or ReminderSettings()
    try:
        catalog = await store.get_all()
    except StorageError:
        logger.exception("Reminder check could not load cards")
        raise
    count = due_count(catalog, clock())
    if not settings.enabled:
        logger.debug("Reminders disabled, %d cards due", count)
    elif count > 0:
        notifier.notify(count)
        logger.info("Reminder sent for %d due cards", count)
    else:
        logger.debug("No cards due for review")
    return count
