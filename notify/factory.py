"""Build a dispatch engine from configuration."""
from __future__ import annotations

import logging

from .config import AppConfig
from .dispatcher import Notify
from .interfaces.notifier import Notifier
from .services import PushbulletService, TelegramService, WeChatService

logger = logging.getLogger(__name__)


def build_services(config: AppConfig) -> list[Notifier]:
    """Instantiate every enabled service, in a fixed order."""
    services: list[Notifier] = []
    if config.services.pushbullet.enabled:
        services.append(PushbulletService(config.services.pushbullet))
    if config.services.wechat.enabled:
        services.append(WeChatService(config.services.wechat))
    if config.services.telegram.enabled:
        services.append(TelegramService(config.services.telegram))
    return services


def build_notify(config: AppConfig) -> Notify:
    """Return a ``Notify`` with all enabled services registered."""
    services = build_services(config)
    if not services:
        logger.warning("No notification services enabled")
    else:
        logger.info(
            "Registered services: %s", ", ".join(type(s).__name__ for s in services)
        )
    return Notify(*services, disabled=config.notify.disabled)
