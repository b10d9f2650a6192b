"""Exceptions raised by notifiers and the dispatch engine."""
from __future__ import annotations

from typing import Any, Sequence


class NotificationError(Exception):
    """Raised by a notifier when a backend rejects or fails a delivery."""


class SendNotificationError(Exception):
    """Raised by :class:`notify.Notify` when one or more notifiers failed.

    Every failure is kept in ``failures`` as ``(notifier, exception)`` pairs;
    the exception is chained to the first of them.
    """

    def __init__(self, failures: Sequence[tuple[Any, BaseException]]) -> None:
        self.failures = tuple(failures)
        details = "; ".join(
            f"{type(notifier).__name__}: {_describe(err)}"
            for notifier, err in self.failures
        )
        super().__init__(f"send notification: {details}")

    @property
    def errors(self) -> tuple[BaseException, ...]:
        return tuple(err for _, err in self.failures)


def _describe(err: BaseException) -> str:
    # TimeoutError and friends often carry no message
    return str(err) or type(err).__name__
