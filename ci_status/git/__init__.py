"""Git helpers used for remote and commit discovery."""

from .repo import GitRepo

__all__ = ["GitRepo"]
