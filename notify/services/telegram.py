"""Telegram notification service."""
import html
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig
from ..errors import NotificationError

logger = logging.getLogger(__name__)


class TelegramService:
    """Send notifications to Telegram chats through a bot."""

    def __init__(self, config: TelegramConfig) -> None:
        self.bot_token = config.bot_token
        self.chat_ids: list[str] = list(config.chat_ids)
        self.silent = config.silent

    def add_receivers(self, *chat_ids: str) -> None:
        """Add chat ids that ``send`` will post to."""
        self.chat_ids.extend(chat_ids)

    @staticmethod
    def _format(subject: str, message: str) -> str:
        if not subject:
            return html.escape(message)
        return f"<b>{html.escape(subject)}</b>\n{html.escape(message)}"

    async def send(self, subject: str, message: str) -> None:
        """Post the message to every configured chat."""
        if not self.chat_ids:
            logger.debug("No Telegram chats configured, skipping")
            return

        url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"
        text = self._format(subject, message)

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            for chat_id in self.chat_ids:
                payload = {
                    "chat_id": chat_id,
                    "text": text,
                    "parse_mode": "HTML",
                    "disable_notification": self.silent,
                }
                try:
                    async with session.post(url, json=payload) as response:
                        if response.status != 200:
                            raise NotificationError(
                                f"failed to send message to Telegram chat "
                                f"'{chat_id}': HTTP {response.status}"
                            )
                except aiohttp.ClientError as e:
                    raise NotificationError(
                        f"failed to send message to Telegram chat '{chat_id}': {e}"
                    ) from e
                logger.info("Telegram message sent to chat %s", chat_id)
