"""Exceptions raised by the simulated node-state provider."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class SimNodeError(Exception):
    """Base class for all simnode errors."""


class InvalidTagsError(SimNodeError, ValueError):
    """A single request mixed metrics tags with plain tags."""

    def __init__(self, tags: Iterable[str]) -> None:
        self.tags = sorted(tags)
        super().__init__(f"mixed tags are not supported: {self.tags}")


class RolePersistenceError(SimNodeError, RuntimeError):
    """
    Writing the role index to the configuration store failed.

    Fatal: the simulation must stop instead of running on a stale role index.
    """

    def __init__(self, path: str, roles: Dict[str, Any], cause: Optional[BaseException] = None) -> None:
        self.path = path
        self.roles = roles
        super().__init__(f"Unexpected exception saving roles {roles} to {path}: {cause}")


class BadVersionError(SimNodeError):
    """Conditional write rejected because the stored version moved on."""

    def __init__(self, path: str, expected: int, actual: int) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(f"bad version for {path}: expected {expected}, found {actual}")


class ScenarioError(SimNodeError, ValueError):
    """A scenario or configuration document could not be understood."""
