"""Forge detection, remote parsing and commit status clients."""

from .base import ForgeLoader, LoaderContext
from .client import (
    CommitStatusClient,
    ForgeClient,
    PUBLIC_API_URL,
    compatible_client,
    downgrade_running,
    github_client,
    passthrough_state,
)
from .detect import DEFAULT_STRATEGIES, ForgeDetector
from .generic import load_generic, parse_generic_remote
from .github import load_github, parse_github_remote
from .url import parse_remote_url
from .validation import repo_ref_from_path, validate_segment

__all__ = [
    "CommitStatusClient",
    "DEFAULT_STRATEGIES",
    "ForgeClient",
    "ForgeDetector",
    "ForgeLoader",
    "LoaderContext",
    "PUBLIC_API_URL",
    "compatible_client",
    "downgrade_running",
    "github_client",
    "load_generic",
    "load_github",
    "parse_generic_remote",
    "parse_github_remote",
    "parse_remote_url",
    "passthrough_state",
    "repo_ref_from_path",
    "validate_segment",
]
