"""Shared types for forge detection strategies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional

from ..models import RemoteURL
from .client import DEFAULT_REQUEST_TIMEOUT, ForgeClient

TOKEN_ENV_KEY = "GITHUB_TOKEN"


@dataclass
class LoaderContext:
    """Inputs shared by strategies during a single detection pass.

    Strategies record why they declined a remote they otherwise recognised
    (missing token, bad path) in ``notes`` so the detector can surface it.
    """

    environ: Mapping[str, str]
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    notes: List[str] = field(default_factory=list)

    def note(self, message: str) -> None:
        if message not in self.notes:
            self.notes.append(message)

    def token(self, strategy: str) -> Optional[str]:
        token = self.environ.get(TOKEN_ENV_KEY) or ""
        if not token:
            self.note(f"{strategy}: {TOKEN_ENV_KEY} not set")
            return None
        return token


# A strategy returns ``None`` whenever it does not apply; it never raises.
ForgeLoader = Callable[[RemoteURL, LoaderContext], Optional[ForgeClient]]


__all__ = ["ForgeLoader", "LoaderContext", "TOKEN_ENV_KEY"]
