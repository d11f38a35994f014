"""Status orchestration around a supervised command."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from .commit import CommitResolver
from .config import TIMEOUT_DESC, RunConfig, SetConfig
from .errors import ApiError, CIStatusError, CommandTimeout, LaunchFailure
from .executor import CommandSupervisor
from .forge.client import DEFAULT_REQUEST_TIMEOUT, ForgeClient
from .forge.detect import ForgeDetector
from .git.repo import GitRepo
from .logging import get_logger
from .models import TIMEOUT_EXIT_CODE, CommandOutcome, OutcomeKind, State, StatusOpts

CI_ENV_KEY = "CI"
LAUNCH_FAILURE_EXIT_CODE = 1


class StatusReporter:
    """Sends statuses for one commit and context.

    When no client or commit is available every call is a no-op; the first
    one logs ``noop_reason`` once unless ``silent`` is set.
    """

    def __init__(
        self,
        client: Optional[ForgeClient],
        commit: Optional[str],
        *,
        context: str,
        target_url: Optional[str] = None,
        logger: logging.Logger,
        silent: bool = False,
        noop_reason: str = "forge client or commit not available",
    ) -> None:
        self.client = client
        self.commit = commit or None
        self.context = context
        self.target_url = target_url or None
        self.logger = logger
        self.silent = silent
        self.noop_reason = noop_reason
        self._noop_logged = False

    def report(self, state: State, description: str) -> None:
        """Send a status; raises :class:`ApiError` if the forge rejects it."""
        if self.client is None or self.commit is None:
            if not self._noop_logged and not self.silent:
                self.logger.warning("Noop: %s", self.noop_reason)
            self._noop_logged = True
            return
        self.client.set_status(
            StatusOpts(
                commit=self.commit,
                context=self.context,
                state=state,
                description=description,
                target_url=self.target_url,
            )
        )

    def try_report(self, state: State, description: str, *, phase: str) -> bool:
        """Best-effort :meth:`report`; failures become warnings."""
        try:
            self.report(state, description)
        except ApiError as exc:
            if not self.silent:
                self.logger.warning("failed to set %s status: %s", phase, exc)
            return False
        return True


class StatusOrchestrator:
    """Sequences running status, command execution and the final status."""

    def __init__(
        self,
        detector: ForgeDetector | None = None,
        resolver: CommitResolver | None = None,
        supervisor: CommandSupervisor | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.logger = logger or get_logger("orchestrator")
        git = None
        if detector is None or resolver is None:
            git = GitRepo()
        self.detector = detector or ForgeDetector(git, environ=self.environ, logger=self.logger)
        self.resolver = resolver or CommitResolver(git, environ=self.environ)
        self.supervisor = supervisor or CommandSupervisor()

    def run(self, config: RunConfig) -> int:
        """Run the wrapped command and report its outcome; return the exit code."""
        reporter = self.reporter(
            context=config.context,
            target_url=config.url,
            forge=config.forge,
            commit=config.commit,
            silent=config.silent,
            request_timeout=config.request_timeout,
        )

        reporter.try_report(State.RUNNING, config.pending_desc, phase="pending")

        outcome = self.supervisor.run(config.command, config.args, timeout=config.timeout)
        return self.finish(reporter, config, outcome)

    def finish(self, reporter: StatusReporter, config: RunConfig, outcome: CommandOutcome) -> int:
        """Map ``outcome`` to the final status and the process exit code."""
        if outcome.kind is OutcomeKind.FAILED_TO_START:
            self.logger.error("%s", LaunchFailure(config.command, outcome.error))
            return LAUNCH_FAILURE_EXIT_CODE

        if outcome.kind is OutcomeKind.TIMED_OUT:
            reporter.try_report(State.ERROR, TIMEOUT_DESC, phase="final")
            self.logger.error("%s", CommandTimeout(config.command, config.timeout or 0))
            return TIMEOUT_EXIT_CODE

        if outcome.exit_code == 0:
            reporter.try_report(State.SUCCESS, config.success_desc, phase="final")
        else:
            reporter.try_report(State.FAILURE, config.failure_desc, phase="final")
        return outcome.exit_code

    def set(self, config: SetConfig) -> int:
        """Report a single status. Returns 1 only when the forge rejects it."""
        reporter = self.reporter(
            context=config.context,
            target_url=config.url,
            forge=config.forge,
            commit=config.commit,
            silent=config.silent,
            request_timeout=config.request_timeout,
        )
        try:
            reporter.report(config.state, config.description)
        except ApiError as exc:
            self.logger.error("failed to set status: %s", exc)
            return 1
        return 0

    def reporter(
        self,
        *,
        context: str,
        target_url: Optional[str] = None,
        forge: Optional[str] = None,
        commit: Optional[str] = None,
        silent: bool = False,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> StatusReporter:
        """Detect the forge client and commit; degrade to a no-op reporter on failure."""
        client: Optional[ForgeClient] = None
        sha: Optional[str] = None
        noop_reason = "forge client or commit not available"

        if not self.environ.get(CI_ENV_KEY):
            noop_reason = "CI environment variable not set, skipping status reporting"
        else:
            try:
                client = self.detector.detect(forge, request_timeout=request_timeout)
            except CIStatusError as exc:
                if not silent:
                    self.logger.warning("%s", exc)
            try:
                sha = self.resolver.resolve(commit)
            except CIStatusError as exc:
                if not silent:
                    self.logger.warning("%s", exc)

        return StatusReporter(
            client,
            sha,
            context=context,
            target_url=target_url,
            logger=self.logger,
            silent=silent,
            noop_reason=noop_reason,
        )


__all__ = ["CI_ENV_KEY", "StatusOrchestrator", "StatusReporter"]
