"""Normalisation of git remote URLs."""

from __future__ import annotations

from urllib.parse import urlsplit

from ..errors import InvalidRemote
from ..models import RemoteURL

SUPPORTED_SCHEMES = ("http", "https", "ssh")


def parse_remote_url(raw_url: str) -> RemoteURL:
    """Parse any supported remote syntax into a :class:`RemoteURL`.

    Accepts ``https://host/owner/repo``, ``ssh://user@host/owner/repo`` and the
    SCP-style ``user@host:owner/repo``. A trailing ``.git`` and trailing slashes
    are removed. The path is returned as-is; dot segments are resolved by
    :func:`ci_status.forge.validation.repo_ref_from_path`.
    """
    original = raw_url
    candidate = (raw_url or "").strip()
    if not candidate:
        raise InvalidRemote(original, "remote url cannot be empty")
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in candidate):
        raise InvalidRemote(original, "control characters are not allowed")
    if "?" in candidate or "#" in candidate:
        raise InvalidRemote(original, "query strings and fragments are not allowed")

    candidate = candidate.rstrip("/").removesuffix(".git").rstrip("/")

    if "@" in candidate and ":" in candidate and "://" not in candidate:
        candidate = _scp_to_ssh(candidate, original)

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as exc:
        raise InvalidRemote(original, str(exc)) from exc

    scheme = parts.scheme.lower()
    if scheme not in SUPPORTED_SCHEMES:
        raise InvalidRemote(original, f"unsupported scheme {parts.scheme or '(none)'!r}")

    host = parts.hostname
    if not host:
        raise InvalidRemote(original, "missing host")

    return RemoteURL(scheme=scheme, host=host, path=parts.path, port=port)


def _scp_to_ssh(candidate: str, original: str) -> str:
    # git@host:owner/repo -> ssh://git@host/owner/repo
    at_index = candidate.index("@")
    colon_index = candidate.find(":", at_index)
    if colon_index == -1:
        raise InvalidRemote(original, "scp-style remote is missing ':' after the host")
    return f"ssh://{candidate[:colon_index]}/{candidate[colon_index + 1:]}"


__all__ = ["SUPPORTED_SCHEMES", "parse_remote_url"]
