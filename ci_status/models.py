"""Core data models shared across ci_status components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class State(str, Enum):
    """Commit status states understood by the orchestrator."""

    # Logical pre-state; the public GitHub status API only knows "pending".
    RUNNING = "running"
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RemoteURL:
    """Canonical form of a git remote."""

    scheme: str
    host: str
    path: str
    port: Optional[int] = None

    @property
    def netloc(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is None:
            return host
        return f"{host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.scheme}://{self.netloc}{self.path}"


@dataclass(frozen=True)
class RepoRef:
    """Validated owner/repository pair."""

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class StatusOpts:
    """Parameters for a single commit status update."""

    commit: str
    context: str
    state: State
    description: str = ""
    target_url: Optional[str] = None


class OutcomeKind(str, Enum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED_TO_START = "failed_to_start"


TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True)
class CommandOutcome:
    """Result of supervising a wrapped command.

    ``error`` holds the OS error for ``FAILED_TO_START`` outcomes and is
    ``None`` otherwise.
    """

    kind: OutcomeKind
    exit_code: int
    error: Optional[OSError] = None

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.COMPLETED and self.exit_code == 0

    @classmethod
    def completed(cls, exit_code: int) -> "CommandOutcome":
        return cls(kind=OutcomeKind.COMPLETED, exit_code=exit_code)

    @classmethod
    def timed_out(cls) -> "CommandOutcome":
        return cls(kind=OutcomeKind.TIMED_OUT, exit_code=TIMEOUT_EXIT_CODE)

    @classmethod
    def failed_to_start(cls, error: OSError) -> "CommandOutcome":
        return cls(kind=OutcomeKind.FAILED_TO_START, exit_code=0, error=error)


__all__ = [
    "CommandOutcome",
    "OutcomeKind",
    "RemoteURL",
    "RepoRef",
    "State",
    "StatusOpts",
    "TIMEOUT_EXIT_CODE",
]
