from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Mapping, Optional

import pytest

from ci_status.git.repo import GitRepo
from tests._fixtures.git_runner import ScriptedGitRunner

SHA = "0123456789abcdef0123456789abcdef01234567"


@pytest.fixture
def sha() -> str:
    return SHA


@pytest.fixture
def make_git(tmp_path: Path) -> Callable[..., GitRepo]:
    """Build a GitRepo whose git commands are answered from a script."""

    def factory(
        *,
        remotes: Mapping[str, str] | None = None,
        head: Optional[str] = None,
    ) -> GitRepo:
        runner = ScriptedGitRunner.for_repo(remotes=remotes, head=head)
        return GitRepo(tmp_path, runner=runner)

    return factory


@pytest.fixture
def test_logger() -> logging.Logger:
    """A propagating logger so caplog sees orchestrator warnings."""
    logger = logging.getLogger("tests.ci_status")
    logger.setLevel(logging.DEBUG)
    return logger
