from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional


LoginStatus = Literal["success", "known_failure", "unknown_failure", "exception"]

UNKNOWN_ERROR = "unknown error"


@dataclass(frozen=True)
class Account:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class LoginResult:
    """
    Outcome of one login attempt. Exactly one status per attempt.

    - `reason` is the matched failure marker (known_failure) or "unknown error" (unknown_failure).
    - `detail` is the exception message (exception).
    """

    username: str
    status: LoginStatus
    reason: Optional[str] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, username: str) -> "LoginResult":
        return cls(username=username, status="success")

    @classmethod
    def known_failure(cls, username: str, reason: str) -> "LoginResult":
        return cls(username=username, status="known_failure", reason=reason)

    @classmethod
    def unknown_failure(cls, username: str) -> "LoginResult":
        return cls(username=username, status="unknown_failure", reason=UNKNOWN_ERROR)

    @classmethod
    def exception(cls, username: str, detail: str) -> "LoginResult":
        return cls(username=username, status="exception", detail=detail)


@dataclass(frozen=True)
class RunSummary:
    results: tuple[LoginResult, ...] = ()
    # One entry per report chunk; empty when notification was skipped.
    chunks_sent: tuple[bool, ...] = ()

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)
