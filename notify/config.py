"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DispatchConfig:
    disabled: bool = False
    timeout: float | None = None


@dataclass(frozen=True)
class PushbulletConfig:
    enabled: bool = False
    api_token: str = ""
    api_url: str = "https://api.pushbullet.com/v2"
    devices: tuple[str, ...] = ()


@dataclass(frozen=True)
class WeChatConfig:
    enabled: bool = False
    app_id: str = ""
    app_secret: str = ""
    token: str = ""
    encoding_aes_key: str = ""
    api_url: str = "https://api.weixin.qq.com/cgi-bin"
    users: tuple[str, ...] = ()


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    bot_token: str = ""
    chat_ids: tuple[str, ...] = ()
    silent: bool = False


@dataclass(frozen=True)
class ServicesConfig:
    pushbullet: PushbulletConfig = field(default_factory=PushbulletConfig)
    wechat: WeChatConfig = field(default_factory=WeChatConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    notify: DispatchConfig = field(default_factory=DispatchConfig)
    services: ServicesConfig = field(default_factory=ServicesConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _receivers(raw: Any) -> tuple[str, ...]:
    """Receiver lists may be written as a YAML list or a comma-separated string."""
    if raw is None:
        return ()
    if isinstance(raw, str):
        return tuple(item.strip() for item in raw.split(",") if item.strip())
    return tuple(str(item) for item in raw)


def _build_dispatch(raw: dict[str, Any]) -> DispatchConfig:
    timeout = raw.get("timeout")
    return DispatchConfig(
        disabled=bool(raw.get("disabled", False)),
        timeout=float(timeout) if timeout not in (None, "") else None,
    )


def _build_services(raw: dict[str, Any]) -> ServicesConfig:
    pb = raw.get("pushbullet") or {}
    wc = raw.get("wechat") or {}
    tg = raw.get("telegram") or {}
    return ServicesConfig(
        pushbullet=PushbulletConfig(
            enabled=bool(pb.get("enabled", False)),
            api_token=pb.get("api_token", ""),
            api_url=pb.get("api_url", PushbulletConfig.api_url),
            devices=_receivers(pb.get("devices")),
        ),
        wechat=WeChatConfig(
            enabled=bool(wc.get("enabled", False)),
            app_id=wc.get("app_id", ""),
            app_secret=wc.get("app_secret", ""),
            token=wc.get("token", ""),
            encoding_aes_key=wc.get("encoding_aes_key", ""),
            api_url=wc.get("api_url", WeChatConfig.api_url),
            users=_receivers(wc.get("users")),
        ),
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            bot_token=tg.get("bot_token", ""),
            chat_ids=_receivers(tg.get("chat_ids")),
            silent=bool(tg.get("silent", False)),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            current working directory.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path.cwd() / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        notify=_build_dispatch(raw.get("notify") or {}),
        services=_build_services(raw.get("services") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.notify.timeout is not None and cfg.notify.timeout <= 0:
        raise ValueError("notify.timeout must be positive")

    services = cfg.services
    if services.pushbullet.enabled and not services.pushbullet.api_token:
        raise ValueError("Pushbullet is enabled but has no api_token")
    if services.wechat.enabled and not (
        services.wechat.app_id and services.wechat.app_secret
    ):
        raise ValueError("WeChat is enabled but app_id or app_secret is missing")
    if services.telegram.enabled and not services.telegram.bot_token:
        raise ValueError("Telegram is enabled but has no bot_token")
