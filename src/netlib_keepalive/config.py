from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .logging_config import RunLog
from .models import Account


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")

DEFAULT_BASE_URL = "https://www.netlib.re"


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    return int(raw)


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Env-only config, so a scheduled job only needs `SITE_ACCOUNTS` and the Telegram variables.

    YAML remains an optional override on top of this.
    """
    return {
        "site": {
            "base_url": os.getenv("SITE_BASE_URL", DEFAULT_BASE_URL),
            "accounts": os.getenv("SITE_ACCOUNTS", ""),
        },
        "telegram": {
            "bot_token": os.getenv("TELEGRAM_BOT_TOKEN", ""),
            "chat_id": os.getenv("TELEGRAM_CHAT_ID", ""),
        },
        "browser": {
            "headless": _env_bool("BROWSER_HEADLESS", default=True),
            "slow_mo_ms": _env_int("BROWSER_SLOWMO_MS", 0),
            "debug_dir": os.getenv("DEBUG_DIR", ""),
        },
        "timing": {
            "settle_ms": _env_int("TIMING_SETTLE_MS", 5000),
            "step_ms": _env_int("TIMING_STEP_MS", 2000),
            "post_submit_ms": _env_int("TIMING_POST_SUBMIT_MS", 2000),
            "success_hold_ms": _env_int("TIMING_SUCCESS_HOLD_MS", 5000),
            "between_accounts_ms": _env_int("TIMING_BETWEEN_ACCOUNTS_MS", 2000),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
        },
    }


def parse_accounts(raw: Optional[str], run_log: RunLog) -> list[Account]:
    """
    Parse `user1,pass1;user2,pass2` into accounts.

    Only the first comma separates username from password, so passwords may contain commas.
    Malformed items are reported to the run log and skipped; nothing here raises.
    """
    accounts: list[Account] = []
    for item in (raw or "").split(";"):
        if not item.strip():
            continue
        parts = item.split(",", 1)
        if len(parts) == 2:
            accounts.append(Account(username=parts[0].strip(), password=parts[1].strip()))
        else:
            run_log.warning(f"Ignoring malformed account entry: {item}")
    return accounts


class SiteConfig(BaseModel):
    # YAML reads unquoted ids/passwords as numbers.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    base_url: str = DEFAULT_BASE_URL
    # Raw `user,pass;user,pass` string; parsed per run so malformed entries land in the report.
    accounts: str = Field(default="", repr=False)

    @field_validator("base_url")
    @classmethod
    def _normalize_base_url(cls, value: str) -> str:
        base_url = (value or "").strip().rstrip("/")
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"site.base_url must be a full URL like '{DEFAULT_BASE_URL}' (got: {value!r})")
        return base_url


class TelegramConfig(BaseModel):
    # Chat ids are usually written unquoted, e.g. -1001234567890.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    bot_token: str = Field(default="", repr=False)
    chat_id: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token.strip() and self.chat_id.strip())


class BrowserConfig(BaseModel):
    headless: bool = True
    slow_mo_ms: int = Field(default=0, ge=0)
    # Empty disables failure screenshots/HTML dumps.
    debug_dir: str = ""


class TimingConfig(BaseModel):
    """
    Fixed waits (milliseconds) padding the target site's page latency.
    """

    settle_ms: int = Field(default=5000, ge=0)
    step_ms: int = Field(default=2000, ge=0)
    post_submit_ms: int = Field(default=2000, ge=0)
    success_hold_ms: int = Field(default=5000, ge=0)
    between_accounts_ms: int = Field(default=2000, ge=0)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""


class AppConfig(BaseModel):
    site: SiteConfig = SiteConfig()
    telegram: TelegramConfig = TelegramConfig()
    browser: BrowserConfig = BrowserConfig()
    timing: TimingConfig = TimingConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)
