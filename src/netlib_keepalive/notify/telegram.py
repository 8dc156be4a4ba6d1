from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

import requests


logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org/bot{token}/sendMessage"

# Telegram caps messages at 4096 characters; leave headroom.
CHUNK_SIZE = 3900

REPORT_TITLE = "📌 Netlib keep-alive log"

UTC_PLUS_8 = timezone(timedelta(hours=8))


def format_timestamp(now: Optional[datetime] = None) -> str:
    """
    Render `now` (default: current time) as `YYYY-MM-DD HH:MM:SS UTC+8`.

    Naive datetimes are taken as UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(UTC_PLUS_8).strftime("%Y-%m-%d %H:%M:%S") + " UTC+8"


def build_report(lines: Iterable[str], now: Optional[datetime] = None) -> str:
    return f"{REPORT_TITLE}\n🕒 {format_timestamp(now)}\n\n" + "\n".join(lines)


def chunk_text(text: str, size: int = CHUNK_SIZE) -> list[str]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [text[i : i + size] for i in range(0, len(text), size)]


class TelegramNotifier:
    """
    Best-effort delivery of a run report to one Telegram chat.

    One GET per chunk, in order; a failed chunk is logged and the next one is still sent.
    """

    def __init__(
        self,
        *,
        bot_token: str,
        chat_id: str,
        session: Optional[Any] = None,
        timeout: float = 10,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.bot_token = (bot_token or "").strip()
        self.chat_id = (chat_id or "").strip()
        # Injected sessions are left open; otherwise one is opened and closed per send.
        self.session = session
        self.timeout = timeout
        self.chunk_size = chunk_size

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def send_report(self, lines: Iterable[str], now: Optional[datetime] = None) -> list[bool]:
        if not self.enabled:
            logger.warning("⚠️ Telegram is not configured, skipping notification")
            return []
        return self.send_text(build_report(lines, now))

    def send_text(self, text: str) -> list[bool]:
        if self.session is not None:
            return self._send_chunks(self.session, text)
        with requests.Session() as session:
            return self._send_chunks(session, text)

    def _send_chunks(self, session: Any, text: str) -> list[bool]:
        results: list[bool] = []
        for idx, chunk in enumerate(chunk_text(text, self.chunk_size), start=1):
            results.append(self._send_chunk(session, idx, chunk))
        return results

    def _send_chunk(self, session: Any, idx: int, chunk: str) -> bool:
        # The token is part of the URL; never log the URL itself.
        url = API_URL.format(token=self.bot_token)
        try:
            resp = session.get(
                url,
                params={"chat_id": self.chat_id, "text": chunk},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("⚠️ Telegram notification error [%d]: %s", idx, _redact(str(e), self.bot_token))
            return False

        if resp.status_code == 200:
            logger.info("✅ Telegram notification sent [%d]", idx)
            return True

        logger.warning(
            "⚠️ Telegram notification failed [%d]: HTTP %s, response: %s",
            idx,
            resp.status_code,
            _redact(resp.text or "", self.bot_token)[:500],
        )
        return False


def _redact(text: str, secret: str) -> str:
    if not secret:
        return text
    return text.replace(secret, "***")
