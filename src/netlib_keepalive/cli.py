from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from .config import AppConfig, load_config, parse_accounts
from .logging_config import RunLog, configure_logging
from .notify.telegram import TelegramNotifier, format_timestamp
from .runner import run


logger = logging.getLogger("netlib_keepalive")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="netlib_keepalive")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    run_p = sub.add_parser("run", help="Log into every account in SITE_ACCOUNTS and send the report to Telegram")
    run_p.add_argument("--config", default="config.yaml", help="Optional YAML override (default: config.yaml)")
    run_p.add_argument("--headful", action="store_true", help="Run browser headful (debug)")
    run_p.add_argument("--slowmo-ms", type=int, default=None, help="Playwright slow motion in milliseconds (debug).")
    run_p.add_argument(
        "--debug-dir",
        default=None,
        help="Save screenshot + HTML for unknown failures and exceptions into this directory.",
    )
    run_p.add_argument("--skip-notify", action="store_true", help="Do not send the Telegram report")

    preflight = sub.add_parser(
        "preflight",
        help="Validate configuration (accounts, Telegram). Does not run Playwright.",
    )
    preflight.add_argument("--config", default="config.yaml", help="Optional YAML override (default: config.yaml)")
    preflight.add_argument("--send-test", action="store_true", help="Send a one-line test message to Telegram")

    return p


def _apply_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    browser = cfg.browser
    updates: dict = {}
    if args.headful:
        updates["headless"] = False
    if args.slowmo_ms is not None:
        updates["slow_mo_ms"] = max(0, int(args.slowmo_ms))
    if args.debug_dir is not None:
        updates["debug_dir"] = args.debug_dir
    if not updates:
        return cfg
    return cfg.model_copy(update={"browser": browser.model_copy(update=updates)})


def _preflight(cfg: AppConfig, *, send_test: bool) -> int:
    logger.info("Starting preflight checks")

    accounts = parse_accounts(cfg.site.accounts, RunLog())
    logger.info("Site: %s", cfg.site.base_url)
    logger.info("Accounts: %d valid (%s)", len(accounts), ", ".join(a.username for a in accounts) or "none")
    logger.info("Telegram configured: %s", "yes" if cfg.telegram.enabled else "no")

    if send_test:
        if not cfg.telegram.enabled:
            logger.error("--send-test requires TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID")
            return 1
        notifier = TelegramNotifier(bot_token=cfg.telegram.bot_token, chat_id=cfg.telegram.chat_id)
        sent = notifier.send_text(f"📌 Netlib keep-alive test message\n🕒 {format_timestamp()}")
        if not all(sent):
            return 1

    logger.info("Preflight OK")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    try:
        cfg = load_config(args.config)
    except (ValidationError, ValueError, yaml.YAMLError) as e:
        logger.error("Invalid configuration:\n%s", e)
        return 1
    configure_logging(level=cfg.logging.level, file_path=cfg.logging.file_path or None)

    if args.cmd == "preflight":
        return _preflight(cfg, send_test=args.send_test)

    if args.cmd == "run":
        cfg = _apply_overrides(cfg, args)
        logger.info("Starting keep-alive run (headless=%s)", cfg.browser.headless)
        try:
            summary = run(cfg, notify=not args.skip_notify)
        except Exception:
            logger.exception("Run failed")
            return 1
        logger.info(
            "Run finished (ok=%d/%d chunks_sent=%d)",
            summary.succeeded,
            len(summary.results),
            sum(1 for c in summary.chunks_sent if c),
        )
        return 0

    raise SystemExit(f"Unknown command: {args.cmd}")
