from __future__ import annotations

import logging
import time
from typing import Optional

from playwright.sync_api import sync_playwright

from .config import AppConfig, parse_accounts
from .logging_config import RunLog
from .models import LoginResult, RunSummary
from .notify.telegram import TelegramNotifier
from .portal.client import SiteLoginClient, launch_browser


logger = logging.getLogger(__name__)


def run_logins(
    cfg: AppConfig,
    run_log: RunLog,
    *,
    client: Optional[SiteLoginClient] = None,
) -> list[LoginResult]:
    """
    Log into every configured account, strictly one after another, on a single browser.

    No browser is launched when there are no valid accounts.
    """
    accounts = parse_accounts(cfg.site.accounts, run_log)
    if not accounts:
        run_log.warning("No valid accounts configured")
        return []

    client = client or SiteLoginClient(
        base_url=cfg.site.base_url,
        timing=cfg.timing,
        debug_dir=cfg.browser.debug_dir,
    )
    pause_s = cfg.timing.between_accounts_ms / 1000.0

    results: list[LoginResult] = []
    with sync_playwright() as p:
        browser = launch_browser(p, headless=cfg.browser.headless, slow_mo_ms=cfg.browser.slow_mo_ms)
        try:
            for account in accounts:
                results.append(client.login(browser, account, run_log))
                time.sleep(pause_s)
        finally:
            browser.close()
    return results


def run(
    cfg: AppConfig,
    *,
    client: Optional[SiteLoginClient] = None,
    notifier: Optional[TelegramNotifier] = None,
    notify: bool = True,
) -> RunSummary:
    run_log = RunLog()
    t0 = time.time()

    results = run_logins(cfg, run_log, client=client)
    if results:
        ok = sum(1 for r in results if r.ok)
        run_log.note(f"🏁 Summary: {ok}/{len(results)} succeeded")
    logger.info("Logins finished (accounts=%d seconds=%.2f)", len(results), time.time() - t0)

    chunks_sent: list[bool] = []
    if notify:
        notifier = notifier or TelegramNotifier(
            bot_token=cfg.telegram.bot_token,
            chat_id=cfg.telegram.chat_id,
        )
        chunks_sent = notifier.send_report(run_log.lines)
    else:
        logger.info("Notification skipped (--skip-notify).")

    return RunSummary(results=tuple(results), chunks_sent=tuple(chunks_sent))
