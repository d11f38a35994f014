"""Detection strategy for repositories hosted on github.com."""

from __future__ import annotations

from typing import Optional

from ..errors import InvalidRemote, RepoPathError
from ..models import RemoteURL, RepoRef
from .base import LoaderContext
from .client import ForgeClient, github_client
from .url import parse_remote_url
from .validation import repo_ref_from_path

GITHUB_HOSTS = frozenset({"github.com", "www.github.com"})


def github_repo_ref(remote: RemoteURL) -> RepoRef:
    """Return the owner/repo of a github.com remote or raise."""
    if remote.host not in GITHUB_HOSTS:
        raise InvalidRemote(str(remote), "not a github.com remote")
    # GitHub has no nested groups: exactly owner/repo.
    return repo_ref_from_path(remote.path, exact=True)


def parse_github_remote(raw_url: str) -> RepoRef:
    """Parse a raw GitHub remote in HTTPS, ``ssh://`` or SCP form."""
    return github_repo_ref(parse_remote_url(raw_url))


def load_github(remote: RemoteURL, context: LoaderContext) -> Optional[ForgeClient]:
    if remote.host not in GITHUB_HOSTS:
        return None
    try:
        ref = github_repo_ref(remote)
    except RepoPathError as exc:
        context.note(f"github: {exc}")
        return None
    token = context.token("github")
    if token is None:
        return None
    return github_client(token, ref, request_timeout=context.request_timeout)


__all__ = ["GITHUB_HOSTS", "github_repo_ref", "load_github", "parse_github_remote"]
