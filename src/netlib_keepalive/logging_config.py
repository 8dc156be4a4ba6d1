import logging
import os
from pathlib import Path
from typing import Optional


logger = logging.getLogger("netlib_keepalive")


def configure_logging(level: str = "INFO", file_path: Optional[str] = None) -> None:
    numeric_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        handlers=handlers,
        force=True,  # allow configure_logging() to be called multiple times (CLI does this)
    )

    # Reduce noise from chatty libraries
    for noisy in ("playwright", "urllib3"):
        logging.getLogger(noisy).setLevel(os.getenv("NOISY_LOG_LEVEL", "WARNING"))


class RunLog:
    """
    Ordered log lines for one run; every line also goes to the regular logger.

    Created at run start, read once by the notifier, then discarded.
    """

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._logger = log or logger
        self._lines: list[str] = []

    def _add(self, level: int, line: str) -> None:
        self._lines.append(line)
        self._logger.log(level, line)

    def info(self, message: str) -> None:
        self._add(logging.INFO, f"🚀 {message}")

    def success(self, message: str) -> None:
        self._add(logging.INFO, f"✅ {message}")

    def failure(self, message: str) -> None:
        self._add(logging.ERROR, f"❌ {message}")

    def warning(self, message: str) -> None:
        self._add(logging.WARNING, f"⚠️ {message}")

    def note(self, message: str) -> None:
        # Lines that carry their own emoji prefix.
        self._add(logging.INFO, message)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)
