"""Read-only git queries behind an injectable command runner."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable, Sequence

from ..errors import CommitResolutionError, NoRemoteFound
from ..logging import get_logger

REMOTE_PRECEDENCE = ("origin", "upstream")


class GitRepo:
    """Answers the questions ci-status asks of the local checkout."""

    def __init__(
        self,
        path: str | Path = ".",
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.path = Path(path)
        self._runner = runner or self._default_runner
        self.logger = get_logger("git")

    def remote_url(self, remotes: Sequence[str] = REMOTE_PRECEDENCE) -> str:
        """Return the URL of the first configured remote in ``remotes``."""
        for name in remotes:
            try:
                url = self._run(["git", "remote", "get-url", name]).strip()
            except (subprocess.CalledProcessError, OSError) as exc:
                self.logger.debug("Remote %s unavailable: %s", name, exc)
                continue
            if url:
                return url
        raise NoRemoteFound(remotes)

    def head_commit(self) -> str:
        """Return the SHA of ``HEAD``."""
        try:
            sha = self._run(["git", "rev-parse", "HEAD"]).strip()
        except (subprocess.CalledProcessError, OSError) as exc:
            raise CommitResolutionError(f"could not resolve HEAD commit: {exc}") from exc
        if not sha:
            raise CommitResolutionError("git rev-parse HEAD returned no commit")
        return sha

    # ------------------------------------------------------------------
    # Helpers

    def _run(self, args: Iterable[str]) -> str:
        return self._runner(args, cwd=self.path)

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = ["GitRepo", "REMOTE_PRECEDENCE"]
