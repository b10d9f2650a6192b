"""Protocol interfaces for notify."""
from .notifier import Notifier

__all__ = ["Notifier"]
