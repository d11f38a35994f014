"""Forge detection via an ordered chain of strategies."""

from __future__ import annotations

import logging
import os
from typing import List, Mapping, Optional, Sequence, Tuple

from ..errors import UnsupportedForge
from ..git.repo import GitRepo
from ..logging import get_logger
from .base import ForgeLoader, LoaderContext
from .client import DEFAULT_REQUEST_TIMEOUT, ForgeClient
from .generic import load_generic
from .github import load_github
from .url import parse_remote_url

DEFAULT_STRATEGIES: Tuple[Tuple[str, ForgeLoader], ...] = (
    ("github", load_github),
    ("generic", load_generic),
)


class ForgeDetector:
    """Builds a :class:`ForgeClient` for the repository's remote.

    Strategies are tried in precedence order and the first client returned
    wins. ``override`` names a strategy to try ahead of the chain.
    """

    def __init__(
        self,
        git: GitRepo | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        strategies: Sequence[Tuple[str, ForgeLoader]] | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self.git = git or GitRepo()
        self.environ = os.environ if environ is None else environ
        self.strategies = list(strategies) if strategies is not None else list(DEFAULT_STRATEGIES)
        self.request_timeout = request_timeout
        self.logger = logger or get_logger("forge.detect")

    def detect(
        self,
        override: str | None = None,
        *,
        remote_url: str | None = None,
        request_timeout: float | None = None,
    ) -> ForgeClient:
        """Return a client or raise a :class:`~ci_status.errors.CIStatusError`.

        Raises ``NoRemoteFound`` when no remote is configured, ``InvalidRemote``
        when it cannot be parsed and ``UnsupportedForge`` when every strategy
        declines.
        """
        raw_url = remote_url if remote_url is not None else self.git.remote_url()
        remote = parse_remote_url(raw_url)
        context = LoaderContext(
            environ=self.environ,
            request_timeout=request_timeout or self.request_timeout,
        )

        for name, strategy in self._ordered(override):
            client = strategy(remote, context)
            if client is not None:
                self.logger.debug("Forge strategy %s matched %s", name, remote)
                for note in context.notes:
                    self.logger.debug("Detection note: %s", note)
                return client

        raise UnsupportedForge(str(remote), context.notes)

    def _ordered(self, override: Optional[str]) -> List[Tuple[str, ForgeLoader]]:
        if not override:
            return list(self.strategies)
        key = override.strip().lower()
        preferred = [item for item in self.strategies if item[0] == key]
        if not preferred:
            self.logger.debug("Unknown forge override %r; using default order", override)
        rest = [item for item in self.strategies if item[0] != key]
        return preferred + rest


__all__ = ["DEFAULT_STRATEGIES", "ForgeDetector"]
