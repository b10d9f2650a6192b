"""WeChat official account notification service."""
from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
import ssl
import time
from typing import Callable, Mapping, Protocol

import aiohttp
import certifi
from aiohttp import web

from ..config import WeChatConfig
from ..errors import NotificationError

logger = logging.getLogger(__name__)

VerificationCallback = Callable[[web.Request, bool], None]

# Refresh the access token this many seconds before WeChat expires it.
_TOKEN_EXPIRY_MARGIN = 60


def signature(*params: str) -> str:
    """SHA1 hex digest of the sorted, concatenated params (WeChat signing)."""
    return hashlib.sha1("".join(sorted(params)).encode()).hexdigest()


class MessageManager(Protocol):
    """Sends a text customer message to one user."""

    async def send_text(self, user_id: str, text: str) -> None: ...


class CustomerMessageManager:
    """Customer-service message API client with a cached access token."""

    def __init__(self, app_id: str, app_secret: str, api_url: str) -> None:
        self.app_id = app_id
        self.app_secret = app_secret
        self.api_url = api_url.rstrip("/")
        self._access_token = ""
        self._expires_at = 0.0

    async def _get_access_token(self, session: aiohttp.ClientSession) -> str:
        if self._access_token and time.monotonic() < self._expires_at:
            return self._access_token

        params = {
            "grant_type": "client_credential",
            "appid": self.app_id,
            "secret": self.app_secret,
        }
        async with session.get(f"{self.api_url}/token", params=params) as response:
            data = await response.json(content_type=None)

        if "access_token" not in data:
            raise NotificationError(
                "failed to fetch WeChat access token: "
                f"{data.get('errcode')} {data.get('errmsg', '')}".rstrip()
            )

        self._access_token = data["access_token"]
        expires_in = int(data.get("expires_in", 7200))
        self._expires_at = time.monotonic() + expires_in - _TOKEN_EXPIRY_MARGIN
        return self._access_token

    async def send_text(self, user_id: str, text: str) -> None:
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            token = await self._get_access_token(session)
            payload = {"touser": user_id, "msgtype": "text", "text": {"content": text}}
            async with session.post(
                f"{self.api_url}/message/custom/send",
                params={"access_token": token},
                json=payload,
            ) as response:
                data = await response.json(content_type=None)

        errcode = data.get("errcode", 0)
        if errcode != 0:
            raise NotificationError(
                f"WeChat API error {errcode}: {data.get('errmsg', '')}"
            )


class WeChatService:
    """Send notifications to WeChat users through an official account."""

    def __init__(
        self, config: WeChatConfig, message_manager: MessageManager | None = None
    ) -> None:
        self.config = config
        self.message_manager: MessageManager = message_manager or CustomerMessageManager(
            config.app_id, config.app_secret, config.api_url
        )
        self.user_ids: list[str] = list(config.users)

    def add_receivers(self, *user_ids: str) -> None:
        """Add user OpenIDs that ``send`` will message."""
        self.user_ids.extend(user_ids)

    async def send(self, subject: str, message: str) -> None:
        """Send ``subject`` and ``message`` as one text message to every user."""
        text = f"{subject}\n{message}"
        for user_id in self.user_ids:
            try:
                await self.message_manager.send_text(user_id, text)
            # ValueError covers a non-JSON response body
            except (NotificationError, aiohttp.ClientError, ValueError) as e:
                raise NotificationError(
                    f"failed to send message to WeChat user '{user_id}': {e}"
                ) from e
            logger.info("WeChat message sent to user %s", user_id)

    # ------------------------------------------------------------------
    # One-off server verification
    # ------------------------------------------------------------------

    def _is_verified(self, query: Mapping[str, str], dev_mode: bool) -> bool:
        if dev_mode:
            return True
        supplied = query.get("signature", "")
        computed = signature(
            self.config.token, query.get("timestamp", ""), query.get("nonce", "")
        )
        return hmac.compare_digest(supplied, computed)

    def build_verification_app(
        self,
        done: asyncio.Event,
        dev_mode: bool = False,
        callback: VerificationCallback | None = None,
    ) -> web.Application:
        """Build the app answering WeChat's verification request.

        ``done`` is set once a request verifies; unverified requests are
        rejected and the app keeps serving.
        """

        async def handle(request: web.Request) -> web.Response:
            verified = self._is_verified(request.query, dev_mode)
            if callback is not None:
                callback(request, verified)
            if not verified:
                logger.warning("Rejected WeChat verification request from %s", request.remote)
                return web.Response(status=403)

            done.set()
            return web.Response(text=request.query.get("echostr", ""))

        app = web.Application()
        app.router.add_get("/{tail:.*}", handle)
        return app

    async def wait_for_one_off_verification(
        self,
        host: str = "0.0.0.0",
        port: int = 8080,
        dev_mode: bool = False,
        callback: VerificationCallback | None = None,
    ) -> None:
        """Serve until WeChat's verification call arrives, then shut down.

        Run this while (re-)applying the server settings of the official
        account. Set ``dev_mode`` when using the sandbox; it skips the
        signature check.
        """
        done = asyncio.Event()
        runner = web.AppRunner(self.build_verification_app(done, dev_mode, callback))
        await runner.setup()
        try:
            site = web.TCPSite(runner, host, port)
            try:
                await site.start()
            except OSError as e:
                raise NotificationError(
                    f"failed to wait for verification at '{host}:{port}': {e}"
                ) from e

            logger.info("Waiting for WeChat verification on %s:%d", host, port)
            await done.wait()
            logger.info("WeChat verification done")
        finally:
            await runner.cleanup()
