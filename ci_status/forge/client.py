"""Commit status clients for GitHub and GitHub-compatible forges."""

from __future__ import annotations

import http.client
import json
from dataclasses import dataclass
from typing import Callable, Dict, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from ..errors import ApiError
from ..logging import get_logger
from ..models import RepoRef, State, StatusOpts

PUBLIC_API_URL = "https://api.github.com"
DEFAULT_REQUEST_TIMEOUT = 30.0

StateTranslator = Callable[[State], State]


class ForgeClient(Protocol):
    """Capability to attach commit statuses to one repository."""

    repo: RepoRef

    def set_status(self, opts: StatusOpts) -> None:
        """Send ``opts`` to the forge or raise :class:`ApiError`."""


def downgrade_running(state: State) -> State:
    """The public status API has no running state; report it as pending."""
    if state is State.RUNNING:
        return State.PENDING
    return state


def passthrough_state(state: State) -> State:
    return state


@dataclass
class StatusRequest:
    """Represents a prepared commit status POST."""

    url: str
    payload: Dict[str, str]
    headers: Dict[str, str]
    timeout: float


class CommitStatusClient:
    """Posts commit statuses to ``{base_url}/repos/{owner}/{repo}/statuses/{sha}``."""

    def __init__(
        self,
        token: str,
        repo: RepoRef,
        *,
        base_url: str | None = None,
        translate_state: StateTranslator | None = None,
        request_timeout: float | None = DEFAULT_REQUEST_TIMEOUT,
        transport: Callable[[StatusRequest], None] | None = None,
    ) -> None:
        self._token = sanitize_token(token)
        self.repo = repo
        self.base_url = (base_url or PUBLIC_API_URL).rstrip("/")
        if translate_state is None:
            translate_state = downgrade_running if self.is_public_api else passthrough_state
        self.translate_state = translate_state
        self.request_timeout = request_timeout or DEFAULT_REQUEST_TIMEOUT
        self._transport = transport or self._http_transport
        self.logger = get_logger("forge.client")

    @property
    def is_public_api(self) -> bool:
        return self.base_url == PUBLIC_API_URL

    def __repr__(self) -> str:
        return f"CommitStatusClient(repo={self.repo}, base_url={self.base_url!r})"

    def set_status(self, opts: StatusOpts) -> None:
        request = self.build_request(opts)
        self.logger.debug(
            "Setting %s status %r on %s (%s)",
            request.payload["state"],
            opts.context,
            opts.commit,
            self.repo,
        )
        self._transport(request)

    def build_request(self, opts: StatusOpts) -> StatusRequest:
        """Translate ``opts`` into the request that would be transmitted."""
        if not opts.commit:
            raise ValueError("commit is required to set a status")
        if not opts.context:
            raise ValueError("context is required to set a status")

        url = (
            f"{self.base_url}/repos/{self.repo.owner}/{self.repo.repo}"
            f"/statuses/{quote(opts.commit, safe='')}"
        )
        payload = {
            "state": self.translate_state(State(opts.state)).value,
            "description": opts.description,
            "context": opts.context,
        }
        if opts.target_url:
            payload["target_url"] = opts.target_url

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/vnd.github.v3+json",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return StatusRequest(url=url, payload=payload, headers=headers, timeout=self.request_timeout)

    @staticmethod
    def _http_transport(request: StatusRequest) -> None:
        data = json.dumps(request.payload).encode("utf-8")
        http_request = Request(request.url, data=data, headers=request.headers, method="POST")
        try:
            with urlopen(http_request, timeout=request.timeout) as response:  # type: ignore[arg-type]
                status = getattr(response, "status", 200)
                body = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise ApiError(f"{exc.code} {exc.reason}", detail.strip()) from exc
        except URLError as exc:
            raise ApiError(f"request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise ApiError(f"request timed out after {request.timeout:g}s") from exc
        except (OSError, http.client.HTTPException) as exc:
            # getresponse() and read() are not wrapped in URLError by urlopen.
            raise ApiError(f"connection failed: {exc!r}") from exc

        if not 200 <= status < 300:
            raise ApiError(str(status), body.decode("utf-8", errors="ignore").strip())


def sanitize_token(token: str | None) -> str:
    """Strip CR/LF so a crafted token cannot inject extra headers."""
    if not token:
        return ""
    return token.replace("\r", "").replace("\n", "")


def github_client(
    token: str,
    repo: RepoRef,
    *,
    request_timeout: float | None = DEFAULT_REQUEST_TIMEOUT,
    transport: Callable[[StatusRequest], None] | None = None,
) -> CommitStatusClient:
    """Client for the public GitHub API; ``running`` is downgraded to ``pending``."""
    return CommitStatusClient(
        token,
        repo,
        base_url=PUBLIC_API_URL,
        translate_state=downgrade_running,
        request_timeout=request_timeout,
        transport=transport,
    )


def compatible_client(
    token: str,
    repo: RepoRef,
    base_url: str,
    *,
    request_timeout: float | None = DEFAULT_REQUEST_TIMEOUT,
    transport: Callable[[StatusRequest], None] | None = None,
) -> CommitStatusClient:
    """Client for a self-hosted GitHub-compatible API; states pass through."""
    return CommitStatusClient(
        token,
        repo,
        base_url=base_url,
        translate_state=passthrough_state,
        request_timeout=request_timeout,
        transport=transport,
    )


__all__ = [
    "CommitStatusClient",
    "DEFAULT_REQUEST_TIMEOUT",
    "ForgeClient",
    "PUBLIC_API_URL",
    "StatusRequest",
    "compatible_client",
    "downgrade_running",
    "github_client",
    "passthrough_state",
    "sanitize_token",
]
