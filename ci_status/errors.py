"""Exception hierarchy for forge detection, status reporting and supervision."""

from __future__ import annotations

from typing import Sequence


class CIStatusError(RuntimeError):
    """Base class for every error raised by ci_status."""


class ConfigError(CIStatusError):
    """Raised when configuration cannot be parsed."""


class RemoteError(CIStatusError):
    """Problems locating or parsing the git remote."""


class InvalidRemote(RemoteError):
    """The remote URL is malformed, unsupported or suspicious."""

    def __init__(self, remote: str, reason: str) -> None:
        super().__init__(f"invalid remote url {remote!r}: {reason}")
        self.remote = remote
        self.reason = reason


class NoRemoteFound(RemoteError):
    """Neither ``origin`` nor ``upstream`` is configured."""

    def __init__(self, remotes: Sequence[str] = ("origin", "upstream")) -> None:
        names = " or ".join(f"'{name}'" for name in remotes)
        super().__init__(f"could not determine remote url for {names}")
        self.remotes = tuple(remotes)


class RepoPathError(CIStatusError):
    """The remote path does not yield a usable owner/repo pair."""


class InsufficientPathSegments(RepoPathError):
    def __init__(self, path: str, found: int) -> None:
        super().__init__(
            f"remote path {path!r} has {found} usable segment(s); owner and repo are required"
        )
        self.path = path
        self.found = found


class InvalidSegment(RepoPathError):
    def __init__(self, segment: str, reason: str) -> None:
        super().__init__(f"repository segment {segment!r} is invalid: {reason}")
        self.segment = segment
        self.reason = reason


class UnsupportedForge(CIStatusError):
    """No detection strategy produced a client for the remote."""

    def __init__(self, remote: str, notes: Sequence[str] = ()) -> None:
        message = f"no supported forge detected for url: {remote}"
        if notes:
            message += " (" + "; ".join(notes) + ")"
        super().__init__(message)
        self.remote = remote
        self.notes = list(notes)


class ApiError(CIStatusError):
    """The forge rejected or failed a status request."""

    def __init__(self, status: str, body: str = "") -> None:
        detail = f"forge api error: {status}"
        if body:
            detail += f" - {body}"
        super().__init__(detail)
        self.status = status
        self.body = body


class CommitResolutionError(CIStatusError):
    """No commit SHA could be determined."""


class LaunchFailure(CIStatusError):
    """The wrapped command could not be started."""

    def __init__(self, command: str, cause: OSError) -> None:
        super().__init__(f"failed to start command {command!r}: {cause}")
        self.command = command
        self.cause = cause


class CommandTimeout(CIStatusError):
    """The wrapped command exceeded its deadline."""

    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(f"command {command!r} timed out after {timeout:g}s")
        self.command = command
        self.timeout = timeout


__all__ = [
    "ApiError",
    "CIStatusError",
    "CommandTimeout",
    "CommitResolutionError",
    "ConfigError",
    "InsufficientPathSegments",
    "InvalidRemote",
    "InvalidSegment",
    "LaunchFailure",
    "NoRemoteFound",
    "RemoteError",
    "RepoPathError",
    "UnsupportedForge",
]
