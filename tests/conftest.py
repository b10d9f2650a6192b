"""Shared test fixtures, fake notifiers and aiohttp mocks."""
from __future__ import annotations

import asyncio
import textwrap
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from notify.config import (
    AppConfig,
    DispatchConfig,
    PushbulletConfig,
    ServicesConfig,
    TelegramConfig,
    WeChatConfig,
)


# ---------------------------------------------------------------------------
# Fake notifiers
# ---------------------------------------------------------------------------


class RecordingNotifier:
    """Records every (subject, message) it receives; optionally fails."""

    def __init__(self, error: Exception | None = None, delay: float = 0.0) -> None:
        self.calls: list[tuple[str, str]] = []
        self.error = error
        self.delay = delay
        self.cancelled = False
        self.finished = False

    async def send(self, subject: str, message: str) -> None:
        self.calls.append((subject, message))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        finally:
            self.finished = True
        if self.error is not None:
            raise self.error


@pytest.fixture()
def ok_notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(error=RuntimeError("device unreachable"))


@pytest.fixture()
def notifier_factory() -> type[RecordingNotifier]:
    """Build RecordingNotifier instances: ``notifier_factory(error=..., delay=...)``."""
    return RecordingNotifier


# ---------------------------------------------------------------------------
# aiohttp mocks
# ---------------------------------------------------------------------------


def make_response(status: int = 200, json_data: Any = None) -> AsyncMock:
    """An ``async with``-able response mock."""
    response = AsyncMock()
    response.status = status
    response.json = AsyncMock(return_value=json_data if json_data is not None else {})
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def make_session(
    get: list[AsyncMock] | None = None, post: list[AsyncMock] | None = None
) -> AsyncMock:
    """An ``async with``-able session mock returning responses in order."""
    session = AsyncMock()
    session.get = MagicMock(side_effect=get or [])
    session.post = MagicMock(side_effect=post or [])
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)
    return session


@pytest.fixture()
def response_factory() -> Callable[..., AsyncMock]:
    return make_response


@pytest.fixture()
def session_factory() -> Callable[..., AsyncMock]:
    return make_session


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_pushbullet_config() -> PushbulletConfig:
    return PushbulletConfig(
        enabled=True,
        api_token="pb-token",
        api_url="https://pushbullet.example.com/v2",
        devices=("phone", "laptop"),
    )


@pytest.fixture()
def sample_wechat_config() -> WeChatConfig:
    return WeChatConfig(
        enabled=True,
        app_id="wx-app",
        app_secret="wx-secret",
        token="wx-token",
        api_url="https://wechat.example.com/cgi-bin",
        users=("user-a", "user-b"),
    )


@pytest.fixture()
def sample_telegram_config() -> TelegramConfig:
    return TelegramConfig(
        enabled=True,
        bot_token="tg-token",
        chat_ids=("111", "222"),
    )


@pytest.fixture()
def sample_app_config(
    sample_pushbullet_config: PushbulletConfig,
    sample_wechat_config: WeChatConfig,
    sample_telegram_config: TelegramConfig,
) -> AppConfig:
    return AppConfig(
        notify=DispatchConfig(disabled=False, timeout=5.0),
        services=ServicesConfig(
            pushbullet=sample_pushbullet_config,
            wechat=sample_wechat_config,
            telegram=sample_telegram_config,
        ),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    notify:
      disabled: false
      timeout: 15
    services:
      pushbullet:
        enabled: true
        api_token: "pb-tok"
        devices: [phone, tablet]
      wechat:
        enabled: true
        app_id: "wx1"
        app_secret: "wx-secret"
        token: "verify-tok"
        users: [openid-1]
      telegram:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
