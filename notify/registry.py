"""Process-wide default dispatch engine and the free functions wrapping it."""
from __future__ import annotations

from .dispatcher import Notify
from .interfaces.notifier import Notifier

# Created at import; registration should finish before concurrent sends begin,
# but use_services is lock-guarded either way.
_std = Notify()


def default() -> Notify:
    """Return the shared default instance."""
    return _std


def use_services(*services: Notifier | None) -> None:
    _std.use_services(*services)


def enable() -> None:
    _std.enable()


def disable() -> None:
    _std.disable()


async def send(subject: str, message: str, timeout: float | None = None) -> None:
    """Send through the default instance. See :meth:`Notify.send`."""
    await _std.send(subject, message, timeout=timeout)
