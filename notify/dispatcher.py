"""Dispatch engine — fans one send out to every registered notifier."""
from __future__ import annotations

import asyncio
import logging
import threading

from .errors import SendNotificationError
from .interfaces.notifier import Notifier

logger = logging.getLogger(__name__)


class Notify:
    """Sends a subject/message pair through all registered notifiers concurrently.

    ``None`` entries may be registered and are skipped at send time. A disabled
    instance accepts every send without invoking any notifier.
    """

    def __init__(self, *services: Notifier | None, disabled: bool = False) -> None:
        self.disabled = disabled
        self._notifiers: list[Notifier | None] = []
        self._lock = threading.Lock()
        self.use_services(*services)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def use_services(self, *services: Notifier | None) -> None:
        """Append notifiers to the registration list."""
        with self._lock:
            self._notifiers.extend(services)

    def use_service(self, service: Notifier | None) -> None:
        self.use_services(service)

    def enable(self) -> None:
        self.disabled = False

    def disable(self) -> None:
        self.disabled = True

    @property
    def notifiers(self) -> tuple[Notifier | None, ...]:
        """Snapshot of the registration list, in registration order."""
        with self._lock:
            return tuple(self._notifiers)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def send(
        self, subject: str, message: str, timeout: float | None = None
    ) -> None:
        """Send ``subject`` and ``message`` through every registered notifier.

        Args:
            subject: Message subject, passed through unchanged.
            message: Message body, passed through unchanged.
            timeout: Per-notifier deadline in seconds. ``None`` means no
                deadline. An expired deadline counts as that notifier's failure.

        Raises:
            SendNotificationError: One or more notifiers failed. All notifiers
                are attempted and awaited before this is raised.
        """
        if self.disabled:
            logger.debug("Notify is disabled, dropping '%s'", subject)
            return

        services = [service for service in self.notifiers if service is not None]
        if not services:
            return

        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(self._attempt(service, subject, message, timeout))
                for service in services
            ]

        failures: list[tuple[Notifier, BaseException]] = []
        for service, task in zip(services, tasks):
            # A notifier that cancelled itself; the caller was not cancelled
            # or the task group would have re-raised already.
            if task.cancelled():
                logger.warning(
                    "%s was cancelled sending '%s'", type(service).__name__, subject
                )
                failures.append((service, asyncio.CancelledError()))
                continue
            error = task.result()
            if error is not None:
                failures.append((service, error))

        if failures:
            raise SendNotificationError(failures) from failures[0][1]

    @staticmethod
    async def _attempt(
        service: Notifier, subject: str, message: str, timeout: float | None
    ) -> Exception | None:
        """Run one notifier and return its exception instead of raising it.

        Must not raise: an exception escaping a task cancels the rest of the
        task group.
        """
        name = type(service).__name__
        logger.debug("Sending '%s' via %s", subject, name)
        try:
            async with asyncio.timeout(timeout):
                await service.send(subject, message)
        except Exception as e:
            logger.warning("%s failed to send '%s': %s", name, subject, e)
            return e
        return None
