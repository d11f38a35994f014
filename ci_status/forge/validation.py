"""Owner/repository extraction and segment whitelisting.

Every status request embeds the owner and repository into the request path,
so segments are resolved and validated here before any client is built.
"""

from __future__ import annotations

import re
from typing import List

from ..errors import InsufficientPathSegments, InvalidSegment
from ..models import RepoRef

_VALID_SEGMENT = re.compile(r"[A-Za-z0-9_.-]+")


def validate_segment(segment: str) -> str:
    """Return ``segment`` unchanged or raise :class:`InvalidSegment`."""
    if not segment:
        raise InvalidSegment(segment, "segment cannot be empty")
    if segment in {".", ".."}:
        raise InvalidSegment(segment, "segment cannot be '.' or '..'")
    if not _VALID_SEGMENT.fullmatch(segment):
        raise InvalidSegment(segment, "contains characters outside [A-Za-z0-9_.-]")
    return segment


def clean_segments(path: str) -> List[str]:
    """Split ``path`` and resolve ``.``/``..`` like a rooted filesystem path."""
    resolved: List[str] = []
    for segment in path.split("/"):
        if not segment or segment == ".":
            continue
        if segment == "..":
            if resolved:
                resolved.pop()
            continue
        resolved.append(segment)
    return resolved


def repo_ref_from_path(path: str, *, exact: bool = False) -> RepoRef:
    """Build a :class:`RepoRef` from the last two cleaned segments of ``path``.

    Nested group paths (``group/subgroup/project``) are accepted unless
    ``exact`` is set, in which case exactly two segments must remain.
    """
    # Segments removed by ".." must not smuggle in characters either.
    for raw in path.split("/"):
        if raw and raw not in {".", ".."}:
            validate_segment(raw)

    segments = clean_segments(path)
    if len(segments) < 2:
        raise InsufficientPathSegments(path, len(segments))
    if exact and len(segments) != 2:
        raise InvalidSegment("/".join(segments), "expected exactly owner/repo")
    owner, repo = segments[-2], segments[-1]
    return RepoRef(owner=validate_segment(owner), repo=validate_segment(repo))


__all__ = ["clean_segments", "repo_ref_from_path", "validate_segment"]
