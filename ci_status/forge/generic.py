"""Detection strategy for self-hosted Gitea/Forgejo-compatible forges."""

from __future__ import annotations

from typing import Optional

from ..errors import RepoPathError
from ..models import RemoteURL, RepoRef
from .base import LoaderContext
from .client import ForgeClient, compatible_client
from .github import GITHUB_HOSTS
from .url import parse_remote_url
from .validation import repo_ref_from_path

# Declined so the dedicated GitHub strategy is never shadowed.
EXCLUDED_HOSTS = GITHUB_HOSTS | {"api.github.com"}
API_PATH = "/api/v1"


def api_base_url(remote: RemoteURL) -> str:
    """Compatible API root for ``remote``.

    SSH remotes are assumed to serve their API over HTTPS on the default port.
    """
    if remote.scheme == "ssh":
        host = RemoteURL(scheme="https", host=remote.host, path="").netloc
        return f"https://{host}{API_PATH}"
    return f"{remote.scheme}://{remote.netloc}{API_PATH}"


def parse_generic_remote(raw_url: str) -> RepoRef:
    """Owner/repo from the last two path segments of any supported remote."""
    return repo_ref_from_path(parse_remote_url(raw_url).path)


def load_generic(remote: RemoteURL, context: LoaderContext) -> Optional[ForgeClient]:
    if remote.host in EXCLUDED_HOSTS:
        return None
    try:
        ref = repo_ref_from_path(remote.path)
    except RepoPathError as exc:
        context.note(f"generic: {exc}")
        return None
    token = context.token("generic")
    if token is None:
        return None
    return compatible_client(
        token,
        ref,
        api_base_url(remote),
        request_timeout=context.request_timeout,
    )


__all__ = ["API_PATH", "EXCLUDED_HOSTS", "api_base_url", "load_generic", "parse_generic_remote"]
