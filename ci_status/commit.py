"""Commit SHA resolution."""

from __future__ import annotations

import os
from typing import Mapping

from .git.repo import GitRepo
from .logging import get_logger

COMMIT_ENV_KEYS = ("GITHUB_SHA", "CI_COMMIT_SHA", "BITBUCKET_COMMIT")


class CommitResolver:
    """Resolves the commit to report against.

    Precedence: explicit override, then the CI variables in
    :data:`COMMIT_ENV_KEYS` order, then ``git rev-parse HEAD``.
    """

    def __init__(
        self,
        git: GitRepo | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.git = git or GitRepo()
        self.environ = os.environ if environ is None else environ
        self.logger = get_logger("commit")

    def resolve(self, override: str | None = None) -> str:
        if override and override.strip():
            return override.strip()
        for key in COMMIT_ENV_KEYS:
            value = (self.environ.get(key) or "").strip()
            if value:
                self.logger.debug("Using commit from %s", key)
                return value
        return self.git.head_commit()


__all__ = ["COMMIT_ENV_KEYS", "CommitResolver"]
