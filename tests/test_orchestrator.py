"""Tests for ci_status.orchestrator."""

from __future__ import annotations

import http.client
import json
import logging
import os

import pytest

from ci_status.commit import CommitResolver
from ci_status.config import RunConfig, SetConfig
from ci_status.errors import ApiError, CommitResolutionError, UnsupportedForge
from ci_status.executor import CommandSupervisor
from ci_status.forge.detect import ForgeDetector
from ci_status.models import CommandOutcome, RepoRef, State, StatusOpts
from ci_status.orchestrator import StatusOrchestrator

CI_ENV = {"CI": "true"}


class RecordingClient:
    """Test double that records status calls."""

    def __init__(self, fail_on: set[State] | None = None) -> None:
        self.repo = RepoRef("octo", "widgets")
        self.calls: list[StatusOpts] = []
        self.fail_on = fail_on or set()

    def set_status(self, opts: StatusOpts) -> None:
        self.calls.append(opts)
        if opts.state in self.fail_on:
            raise ApiError("500 Internal Server Error", "boom")


class StubDetector:
    def __init__(self, client=None, error: Exception | None = None) -> None:
        self.client = client
        self.error = error
        self.calls: list[tuple[object, object]] = []

    def detect(self, override=None, *, remote_url=None, request_timeout=None):
        self.calls.append((override, request_timeout))
        if self.error is not None:
            raise self.error
        return self.client


class StubResolver:
    def __init__(self, commit: str | None = "abc123", error: Exception | None = None) -> None:
        self.commit = commit
        self.error = error
        self.overrides: list[object] = []

    def resolve(self, override=None) -> str:
        self.overrides.append(override)
        if self.error is not None:
            raise self.error
        return self.commit


class StubSupervisor:
    def __init__(self, outcome: CommandOutcome) -> None:
        self.outcome = outcome
        self.calls: list[tuple[str, list[str], object]] = []

    def run(self, command, args=(), *, timeout=None) -> CommandOutcome:
        self.calls.append((command, list(args), timeout))
        return self.outcome


def _config(**overrides) -> RunConfig:
    values = {"context": "ci/test", "command": "make", "args": ["test"]}
    values.update(overrides)
    return RunConfig(**values)


def _orchestrator(client, outcome, *, logger, environ=CI_ENV, detector=None, resolver=None):
    return StatusOrchestrator(
        detector=detector or StubDetector(client),
        resolver=resolver or StubResolver(),
        supervisor=StubSupervisor(outcome),
        environ=environ,
        logger=logger,
    )


def test_success_reports_running_then_success(test_logger) -> None:
    client = RecordingClient()
    orchestrator = _orchestrator(client, CommandOutcome.completed(0), logger=test_logger)

    exit_code = orchestrator.run(_config(url="https://ci.example.com/1"))

    assert exit_code == 0
    assert [call.state for call in client.calls] == [State.RUNNING, State.SUCCESS]
    assert [call.description for call in client.calls] == ["Running...", "Passed"]
    assert all(call.commit == "abc123" for call in client.calls)
    assert all(call.context == "ci/test" for call in client.calls)
    assert all(call.target_url == "https://ci.example.com/1" for call in client.calls)
    assert orchestrator.supervisor.calls == [("make", ["test"], None)]


def test_failure_mirrors_child_exit_code(test_logger) -> None:
    client = RecordingClient()
    orchestrator = _orchestrator(client, CommandOutcome.completed(3), logger=test_logger)

    exit_code = orchestrator.run(_config(failure_desc="Tests failed"))

    assert exit_code == 3
    assert client.calls[-1].state is State.FAILURE
    assert client.calls[-1].description == "Tests failed"


def test_timeout_reports_error_and_exits_124(test_logger, caplog) -> None:
    client = RecordingClient()
    orchestrator = _orchestrator(client, CommandOutcome.timed_out(), logger=test_logger)

    with caplog.at_level(logging.ERROR, logger=test_logger.name):
        exit_code = orchestrator.run(_config(timeout=0.1))

    assert exit_code == 124
    assert client.calls[-1].state is State.ERROR
    assert client.calls[-1].description == "Timed out"
    assert "command 'make' timed out after 0.1s" in caplog.text
    assert orchestrator.supervisor.calls[0][2] == 0.1


def test_launch_failure_sends_no_final_status(test_logger, caplog) -> None:
    client = RecordingClient()
    outcome = CommandOutcome.failed_to_start(FileNotFoundError(2, "No such file", "make"))
    orchestrator = _orchestrator(client, outcome, logger=test_logger)

    with caplog.at_level(logging.ERROR, logger=test_logger.name):
        exit_code = orchestrator.run(_config())

    assert exit_code == 1
    assert [call.state for call in client.calls] == [State.RUNNING]
    assert "failed to start command 'make'" in caplog.text
    assert "No such file" in caplog.text


def test_pending_failure_is_only_a_warning(test_logger, caplog) -> None:
    client = RecordingClient(fail_on={State.RUNNING})
    orchestrator = _orchestrator(client, CommandOutcome.completed(0), logger=test_logger)

    with caplog.at_level(logging.WARNING, logger=test_logger.name):
        exit_code = orchestrator.run(_config())

    assert exit_code == 0
    assert [call.state for call in client.calls] == [State.RUNNING, State.SUCCESS]
    assert "failed to set pending status" in caplog.text


def test_final_status_failure_does_not_change_exit_code(test_logger, caplog) -> None:
    client = RecordingClient(fail_on={State.FAILURE})
    orchestrator = _orchestrator(client, CommandOutcome.completed(2), logger=test_logger)

    with caplog.at_level(logging.WARNING, logger=test_logger.name):
        exit_code = orchestrator.run(_config())

    assert exit_code == 2
    assert "failed to set final status" in caplog.text


def test_detection_failure_runs_command_as_noop(test_logger, caplog) -> None:
    detector = StubDetector(error=UnsupportedForge("https://example.com/o/r"))
    orchestrator = _orchestrator(
        None, CommandOutcome.completed(5), logger=test_logger, detector=detector
    )

    with caplog.at_level(logging.WARNING, logger=test_logger.name):
        exit_code = orchestrator.run(_config())

    assert exit_code == 5
    assert orchestrator.supervisor.calls
    assert "no supported forge detected" in caplog.text
    assert caplog.text.count("Noop:") == 1


def test_missing_commit_makes_reporting_a_noop(test_logger, caplog) -> None:
    client = RecordingClient()
    resolver = StubResolver(error=CommitResolutionError("could not resolve HEAD commit"))
    orchestrator = _orchestrator(
        client, CommandOutcome.completed(0), logger=test_logger, resolver=resolver
    )

    with caplog.at_level(logging.WARNING, logger=test_logger.name):
        exit_code = orchestrator.run(_config())

    assert exit_code == 0
    assert client.calls == []
    assert "could not resolve HEAD commit" in caplog.text


def test_without_ci_variable_nothing_is_detected(test_logger, caplog) -> None:
    client = RecordingClient()
    detector = StubDetector(client)
    orchestrator = _orchestrator(
        client, CommandOutcome.completed(0), logger=test_logger, environ={}, detector=detector
    )

    with caplog.at_level(logging.WARNING, logger=test_logger.name):
        exit_code = orchestrator.run(_config())

    assert exit_code == 0
    assert detector.calls == []
    assert client.calls == []
    assert "CI environment variable not set" in caplog.text


def test_silent_suppresses_warnings_but_not_errors(test_logger, caplog) -> None:
    detector = StubDetector(error=UnsupportedForge("https://example.com/o/r"))
    orchestrator = _orchestrator(
        None, CommandOutcome.timed_out(), logger=test_logger, detector=detector
    )

    with caplog.at_level(logging.DEBUG, logger=test_logger.name):
        exit_code = orchestrator.run(_config(silent=True, timeout=1.0))

    assert exit_code == 124
    warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert warnings == []
    assert any(record.levelno == logging.ERROR for record in caplog.records)


def test_overrides_are_forwarded(test_logger) -> None:
    detector = StubDetector(RecordingClient())
    resolver = StubResolver()
    orchestrator = _orchestrator(
        None, CommandOutcome.completed(0), logger=test_logger, detector=detector, resolver=resolver
    )

    orchestrator.run(_config(forge="github", commit="feedface", request_timeout=7.0))

    assert detector.calls == [("github", 7.0)]
    assert resolver.overrides == ["feedface"]


def test_set_reports_single_status(test_logger) -> None:
    client = RecordingClient()
    orchestrator = _orchestrator(client, CommandOutcome.completed(0), logger=test_logger)

    exit_code = orchestrator.set(
        SetConfig(context="ci/deploy", state=State.SUCCESS, description="Deployed")
    )

    assert exit_code == 0
    assert len(client.calls) == 1
    assert client.calls[0].state is State.SUCCESS
    assert client.calls[0].description == "Deployed"
    assert orchestrator.supervisor.calls == []


def test_set_returns_one_on_api_error(test_logger, caplog) -> None:
    client = RecordingClient(fail_on={State.PENDING})
    orchestrator = _orchestrator(client, CommandOutcome.completed(0), logger=test_logger)

    with caplog.at_level(logging.ERROR, logger=test_logger.name):
        exit_code = orchestrator.set(SetConfig(context="ci/deploy"))

    assert exit_code == 1
    assert "failed to set status" in caplog.text


def test_set_noop_exits_zero(test_logger, caplog) -> None:
    orchestrator = _orchestrator(None, CommandOutcome.completed(0), logger=test_logger, environ={})

    with caplog.at_level(logging.WARNING, logger=test_logger.name):
        assert orchestrator.set(SetConfig(context="ci/deploy")) == 0

    assert "Noop:" in caplog.text


@pytest.mark.skipif(os.name != "posix", reason="uses POSIX utilities")
def test_without_token_real_command_exit_code_is_honoured(make_git, sha, test_logger, caplog) -> None:
    environ = {"CI": "1", "GITHUB_SHA": sha}
    git = make_git(remotes={"origin": "https://github.com/octo/widgets.git"}, head=sha)
    orchestrator = StatusOrchestrator(
        detector=ForgeDetector(git, environ=environ, logger=test_logger),
        resolver=CommitResolver(git, environ=environ),
        supervisor=CommandSupervisor(),
        environ=environ,
        logger=test_logger,
    )

    with caplog.at_level(logging.WARNING, logger=test_logger.name):
        exit_code = orchestrator.run(_config(command="sh", args=["-c", "exit 4"]))

    assert exit_code == 4
    assert "GITHUB_TOKEN not set" in caplog.text
    assert caplog.text.count("Noop:") == 1


@pytest.mark.skipif(os.name != "posix", reason="uses POSIX utilities")
def test_end_to_end_with_compatible_forge(make_git, sha, test_logger, monkeypatch) -> None:
    sent = []

    class FakeResponse:
        status = 201

        def read(self):
            return b"{}"

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

    def fake_urlopen(request, timeout=None):
        sent.append((request.full_url, json.loads(request.data.decode("utf-8"))))
        return FakeResponse()

    monkeypatch.setattr("ci_status.forge.client.urlopen", fake_urlopen)
    environ = {"CI": "1", "GITHUB_TOKEN": "tok"}
    git = make_git(remotes={"origin": "git@gitea.example.com:team/app.git"}, head=sha)
    orchestrator = StatusOrchestrator(
        detector=ForgeDetector(git, environ=environ, logger=test_logger),
        resolver=CommitResolver(git, environ=environ),
        supervisor=CommandSupervisor(),
        environ=environ,
        logger=test_logger,
    )

    exit_code = orchestrator.run(_config(command="true", args=[]))

    assert exit_code == 0
    assert [payload["state"] for _, payload in sent] == ["running", "success"]
    assert sent[0][0] == f"https://gitea.example.com/api/v1/repos/team/app/statuses/{sha}"


@pytest.mark.skipif(os.name != "posix", reason="uses POSIX utilities")
def test_dropped_forge_connection_does_not_block_command(make_git, sha, test_logger, caplog, monkeypatch) -> None:
    def fake_urlopen(request, timeout=None):
        raise http.client.RemoteDisconnected("Remote end closed connection without response")

    monkeypatch.setattr("ci_status.forge.client.urlopen", fake_urlopen)
    environ = {"CI": "1", "GITHUB_TOKEN": "tok"}
    git = make_git(remotes={"origin": "http://127.0.0.1:3000/team/app"}, head=sha)
    orchestrator = StatusOrchestrator(
        detector=ForgeDetector(git, environ=environ, logger=test_logger),
        resolver=CommitResolver(git, environ=environ),
        supervisor=CommandSupervisor(),
        environ=environ,
        logger=test_logger,
    )

    with caplog.at_level(logging.WARNING, logger=test_logger.name):
        exit_code = orchestrator.run(_config(command="sh", args=["-c", "exit 3"]))

    assert exit_code == 3
    assert "failed to set pending status" in caplog.text
    assert "failed to set final status" in caplog.text
    assert "RemoteDisconnected" in caplog.text
