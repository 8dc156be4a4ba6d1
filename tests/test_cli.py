from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from netlib_keepalive import cli, runner
from netlib_keepalive.config import AppConfig
from netlib_keepalive.models import LoginResult, RunSummary


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("SITE_ACCOUNTS", "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "LOG_FILE", "BROWSER_HEADLESS"):
        monkeypatch.delenv(key, raising=False)


def _argv(tmp_path: Path, *rest: str) -> list[str]:
    # Point at files that don't exist so a developer's local .env/config.yaml never leak in.
    return ["--env-file", str(tmp_path / "missing.env"), *rest, "--config", str(tmp_path / "missing.yaml")]


def test_run_returns_1_when_orchestrator_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(_cfg: AppConfig, **_kw: Any) -> RunSummary:
        raise RuntimeError("browser launch failed")

    monkeypatch.setattr(cli, "run", _boom)
    assert cli.main(_argv(tmp_path, "run")) == 1


def test_run_returns_0_even_when_accounts_fail(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _fake_run(_cfg: AppConfig, **_kw: Any) -> RunSummary:
        return RunSummary(results=(LoginResult.unknown_failure("a"), LoginResult.exception("b", "x")))

    monkeypatch.setattr(cli, "run", _fake_run)
    assert cli.main(_argv(tmp_path, "run")) == 0


def test_run_with_no_accounts_and_no_telegram_exits_0(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _no_browser() -> None:
        raise AssertionError("browser must not be launched")

    monkeypatch.setattr(runner, "sync_playwright", _no_browser)
    assert cli.main(_argv(tmp_path, "run")) == 0


def test_cli_flags_override_browser_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, Any] = {}

    def _fake_run(cfg: AppConfig, **kw: Any) -> RunSummary:
        seen["cfg"] = cfg
        seen["notify"] = kw.get("notify")
        return RunSummary()

    monkeypatch.setattr(cli, "run", _fake_run)
    debug_dir = str(tmp_path / "debug")
    argv = _argv(tmp_path, "run", "--headful", "--slowmo-ms", "250", "--debug-dir", debug_dir, "--skip-notify")

    assert cli.main(argv) == 0
    cfg = seen["cfg"]
    assert cfg.browser.headless is False
    assert cfg.browser.slow_mo_ms == 250
    assert cfg.browser.debug_dir == debug_dir
    assert seen["notify"] is False


def test_env_file_is_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / "site.env"
    env_file.write_text("SITE_ACCOUNTS=alice,pw\n", encoding="utf-8")
    # Register the key with monkeypatch so the value load_dotenv() writes is removed afterwards.
    monkeypatch.setenv("SITE_ACCOUNTS", "placeholder")
    monkeypatch.delenv("SITE_ACCOUNTS")
    seen: dict[str, Any] = {}

    def _fake_run(cfg: AppConfig, **_kw: Any) -> RunSummary:
        seen["accounts"] = cfg.site.accounts
        return RunSummary()

    monkeypatch.setattr(cli, "run", _fake_run)
    argv = ["--env-file", str(env_file), "run", "--config", str(tmp_path / "missing.yaml")]

    assert cli.main(argv) == 0
    assert seen["accounts"] == "alice,pw"


def test_invalid_config_returns_1(tmp_path: Path) -> None:
    cfg_path = tmp_path / "cfg.yaml"
    cfg_path.write_text("site:\n  base_url: \"not a url\"\n", encoding="utf-8")
    argv = ["--env-file", str(tmp_path / "missing.env"), "run", "--config", str(cfg_path)]
    assert cli.main(argv) == 1


def test_preflight_ok_without_browser(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SITE_ACCOUNTS", "a,1;bad")
    assert cli.main(_argv(tmp_path, "preflight")) == 0


def test_preflight_send_test_requires_telegram(tmp_path: Path) -> None:
    assert cli.main(_argv(tmp_path, "preflight", "--send-test")) == 1


def test_preflight_accepts_numeric_chat_id_in_yaml(tmp_path: Path) -> None:
    cfg_path = tmp_path / "cfg.yaml"
    cfg_path.write_text("telegram:\n  chat_id: -1001234567890\n", encoding="utf-8")
    argv = ["--env-file", str(tmp_path / "missing.env"), "preflight", "--config", str(cfg_path)]
    assert cli.main(argv) == 0
