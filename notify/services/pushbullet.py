"""Pushbullet push notification service."""
import logging
import ssl

import aiohttp
import certifi

from ..config import PushbulletConfig
from ..errors import NotificationError

logger = logging.getLogger(__name__)


class PushbulletService:
    """Push notes to Pushbullet devices, addressed by device nickname.

    Requires the Pushbullet app on each device (android, chrome, firefox,
    windows). Nicknames that match no registered device are skipped.
    """

    def __init__(self, config: PushbulletConfig) -> None:
        self.api_token = config.api_token
        self.api_url = config.api_url.rstrip("/")
        self.device_nicknames: list[str] = list(config.devices)

    def add_receivers(self, *device_nicknames: str) -> None:
        """Add device nicknames that ``send`` will push to."""
        self.device_nicknames.extend(device_nicknames)

    @property
    def _headers(self) -> dict[str, str]:
        return {"Access-Token": self.api_token}

    async def _fetch_devices(self, session: aiohttp.ClientSession) -> dict[str, str]:
        """Return a mapping of active device nickname to device iden."""
        url = f"{self.api_url}/devices"
        try:
            async with session.get(url, headers=self._headers) as response:
                if response.status != 200:
                    raise NotificationError(
                        f"failed to list Pushbullet devices: HTTP {response.status}"
                    )
                data = await response.json()
        except (aiohttp.ClientError, ValueError) as e:
            raise NotificationError(
                f"failed to list Pushbullet devices at '{url}': {e}"
            ) from e

        return {
            device["nickname"]: device["iden"]
            for device in data.get("devices", [])
            if device.get("active", True) and device.get("nickname")
        }

    async def _push_note(
        self,
        session: aiohttp.ClientSession,
        nickname: str,
        device_iden: str,
        subject: str,
        message: str,
    ) -> None:
        payload = {
            "type": "note",
            "title": subject,
            "body": message,
            "device_iden": device_iden,
        }
        try:
            async with session.post(
                f"{self.api_url}/pushes", json=payload, headers=self._headers
            ) as response:
                if response.status != 200:
                    raise NotificationError(
                        "failed to send message to Pushbullet device with "
                        f"nickname '{nickname}': HTTP {response.status}"
                    )
        except aiohttp.ClientError as e:
            raise NotificationError(
                "failed to send message to Pushbullet device with "
                f"nickname '{nickname}': {e}"
            ) from e

    async def send(self, subject: str, message: str) -> None:
        """Push a note to every configured device."""
        if not self.device_nicknames:
            logger.debug("No Pushbullet devices configured, skipping")
            return

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            devices = await self._fetch_devices(session)

            for nickname in self.device_nicknames:
                device_iden = devices.get(nickname)
                if device_iden is None:
                    logger.warning(
                        "Pushbullet device '%s' is not registered, skipping", nickname
                    )
                    continue

                await self._push_note(session, nickname, device_iden, subject, message)
                logger.info("Pushbullet note sent to '%s'", nickname)
