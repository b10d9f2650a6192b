"""Concurrent notification dispatch to push and chat backends."""
from .registry import default, disable, enable, send, use_services
from .dispatcher import Notify
from .errors import NotificationError, SendNotificationError
from .interfaces import Notifier

__all__ = [
    "Notifier",
    "Notify",
    "NotificationError",
    "SendNotificationError",
    "default",
    "disable",
    "enable",
    "send",
    "use_services",
]
