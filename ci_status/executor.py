"""Supervision of the wrapped command."""

from __future__ import annotations

import subprocess
from typing import IO, Optional, Sequence

from .logging import get_logger
from .models import CommandOutcome


class CommandSupervisor:
    """Runs a command with live output and an optional wall-clock deadline.

    ``stdout``/``stderr`` default to the parent's streams. When given they must
    be real files (anything with a ``fileno``) because output is never buffered
    by the supervisor.
    """

    def __init__(
        self,
        stdout: Optional[IO[bytes]] = None,
        stderr: Optional[IO[bytes]] = None,
    ) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.logger = get_logger("executor")

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        timeout: float | None = None,
    ) -> CommandOutcome:
        """Run ``command`` and classify how it ended.

        A non-zero exit is a normal ``completed`` outcome. Launch errors and
        deadline expiry are reported through the outcome, not raised.
        """
        argv = [command, *args]
        deadline = timeout if timeout and timeout > 0 else None
        self.logger.debug("Running %s (timeout=%s)", argv, deadline)

        try:
            process = subprocess.Popen(argv, stdout=self.stdout, stderr=self.stderr)
        except OSError as exc:
            self.logger.debug("Failed to start %s: %s", command, exc)
            return CommandOutcome.failed_to_start(exc)

        with process:
            try:
                returncode = process.wait(timeout=deadline)
            except subprocess.TimeoutExpired:
                self.logger.debug("Deadline of %ss expired; killing pid %s", deadline, process.pid)
                _kill(process)
                return CommandOutcome.timed_out()

        return CommandOutcome.completed(_exit_code(returncode))


def _kill(process: subprocess.Popen) -> None:
    if process.poll() is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    process.wait()


def _exit_code(returncode: int) -> int:
    # Popen reports death-by-signal as -signum; shells report 128 + signum.
    if returncode < 0:
        return 128 - returncode
    return returncode


__all__ = ["CommandSupervisor"]
