"""Notifier protocol — delivery backend abstraction."""
from typing import Protocol


class Notifier(Protocol):
    """Abstract interface for a single delivery backend.

    ``send`` returns normally once the backend accepted the message and raises
    (usually :class:`notify.errors.NotificationError`) when it did not.
    """

    async def send(self, subject: str, message: str) -> None: ...
