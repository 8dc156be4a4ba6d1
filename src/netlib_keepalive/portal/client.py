from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from playwright.sync_api import Browser, Page, Playwright

from ..config import TimingConfig
from ..logging_config import RunLog
from ..models import Account, LoginResult
from .selectors import SiteSelectors


logger = logging.getLogger(__name__)


def launch_browser(p: Playwright, *, headless: bool = True, slow_mo_ms: int = 0) -> Browser:
    # Prefer Playwright's bundled Chromium, but fall back to a system-installed browser if the
    # cache doesn't have Playwright browsers available.
    slow_mo = int(slow_mo_ms or 0)
    try:
        return p.chromium.launch(headless=headless, slow_mo=slow_mo)
    except Exception as e:
        msg = str(e)
        if "Executable doesn't exist" not in msg:
            raise

        logger.warning(
            "Playwright Chromium executable missing; falling back to system browser channel. (%s)",
            msg,
        )

        # Try Chrome first, then Edge.
        try:
            return p.chromium.launch(headless=headless, slow_mo=slow_mo, channel="chrome")
        except Exception:
            return p.chromium.launch(headless=headless, slow_mo=slow_mo, channel="msedge")


class SiteLoginClient:
    """
    Drives the netlib.re login form for one account at a time.

    The waits are fixed paddings for the site's page latency, not readiness checks.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timing: Optional[TimingConfig] = None,
        selectors: Optional[SiteSelectors] = None,
        debug_dir: str = "",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timing = timing or TimingConfig()
        self.selectors = selectors or SiteSelectors()
        self.debug_dir = debug_dir

    def login(self, browser: Browser, account: Account, run_log: RunLog) -> LoginResult:
        """
        Attempt one login in a fresh browser context and classify the outcome.

        Never raises: automation errors become an `exception` result.
        """
        username = account.username
        run_log.info(f"Logging in account: {username}")

        ctx = None
        page: Optional[Page] = None
        try:
            # Fresh context per account so cookies/sessions never leak between accounts.
            ctx = browser.new_context()
            page = ctx.new_page()
            self._submit_credentials(page, account)

            result = self._classify(page, username)
            if result.ok:
                run_log.success(f"Account {username} logged in successfully")
                # Let the session fully establish before the context goes away.
                try:
                    page.wait_for_timeout(self.timing.success_hold_ms)
                except Exception:
                    logger.debug("Success hold interrupted for %s.", username, exc_info=True)
            else:
                run_log.failure(f"Account {username} login failed: {result.reason}")
                if result.status == "unknown_failure":
                    self._save_debug(page, name_prefix=f"{_safe_name(username)}_unknown_failure")
            return result
        except Exception as e:
            run_log.failure(f"Account {username} login raised an exception: {e}")
            logger.debug("Login exception for %s", username, exc_info=True)
            if page is not None:
                self._save_debug(page, name_prefix=f"{_safe_name(username)}_exception")
            return LoginResult.exception(username, str(e))
        finally:
            if ctx is not None:
                try:
                    ctx.close()
                except Exception:
                    logger.debug("Failed to close browser context for %s.", username, exc_info=True)

    def _submit_credentials(self, page: Page, account: Account) -> None:
        t = self.timing
        s = self.selectors

        page.goto(self.base_url + "/")
        page.wait_for_timeout(t.settle_ms)

        page.click(s.login_entry)
        page.wait_for_timeout(t.step_ms)

        page.fill(s.username_input, account.username)
        page.wait_for_timeout(t.step_ms)

        page.fill(s.password_input, account.password)
        page.wait_for_timeout(t.step_ms)

        page.click(s.submit)
        page.wait_for_load_state("networkidle")
        page.wait_for_timeout(t.post_submit_ms)

    def _classify(self, page: Page, username: str) -> LoginResult:
        # Success is checked first: a page showing both markers counts as logged in.
        if self._has_text(page, self.selectors.success_text):
            return LoginResult.success(username)

        for msg in self.selectors.failure_texts:
            if self._has_text(page, msg):
                return LoginResult.known_failure(username, msg)

        return LoginResult.unknown_failure(username)

    def _has_text(self, page: Page, text: str) -> bool:
        return page.get_by_text(text, exact=False).count() > 0

    def _save_debug(self, page: Page, *, name_prefix: str) -> None:
        if not self.debug_dir:
            return
        try:
            out_dir = Path(self.debug_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            page.screenshot(path=str(out_dir / f"{name_prefix}.png"), full_page=True)
            (out_dir / f"{name_prefix}.html").write_text(page.content(), encoding="utf-8")
            # Also save the rendered body text so marker mismatches can be checked offline.
            try:
                (out_dir / f"{name_prefix}.txt").write_text(page.inner_text("body"), encoding="utf-8")
            except Exception:
                pass
        except Exception:
            logger.debug("Failed to save debug artifacts.", exc_info=True)


def _safe_name(username: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_-]+", "_", username).strip("_")[:60] or "account"
