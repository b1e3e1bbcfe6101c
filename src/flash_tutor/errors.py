"""Exceptions raised by the scheduler, the review session and the card store."""


class FlashTutorError(Exception):
    """Base class for all flash_tutor errors."""


class PreconditionError(FlashTutorError):
    """A card handed to the scheduler already violates its invariants."""


class InvalidStateError(FlashTutorError):
    """A review session operation was called in a state that does not allow it."""


class ValidationError(FlashTutorError):
    """User-supplied input (card text, difficulty, reminder time) was rejected."""


class StorageError(FlashTutorError):
    """The card store failed to read or write."""


class CardNotFound(StorageError):
    def __init__(self, card_id: int):
        super().__init__(f"No card with id {card_id}")
        self.card_id = card_id
