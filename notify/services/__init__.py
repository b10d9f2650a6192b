"""Delivery backends implementing the Notifier protocol."""
from .pushbullet import PushbulletService
from .telegram import TelegramService
from .wechat import WeChatService

__all__ = ["PushbulletService", "TelegramService", "WeChatService"]
