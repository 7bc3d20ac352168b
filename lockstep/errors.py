"""Errors raised while loading or rewriting a workspace.

Version mismatches are not errors; they are reported as violations by the
engine. Everything here means the run could not do what was asked.
"""

from __future__ import annotations


class LockstepError(Exception):
    """Base class for lockstep failures."""


class MalformedManifest(LockstepError):
    """A manifest could not be read or lacks a required field."""

    def __init__(self, location: str, cause: object) -> None:
        super().__init__(f"{location}: {cause}")
        self.location = location
        self.cause = cause


class DuplicatePackage(LockstepError):
    """Two workspace members declare the same package name."""

    def __init__(self, name: str, first: str, second: str) -> None:
        super().__init__(
            f"Package '{name}' is declared by both {first} and {second}"
        )
        self.name = name
        self.first = first
        self.second = second


class WriteFailed(LockstepError):
    """A modified manifest could not be persisted.

    Collected by the update engine rather than raised, so one failing file
    does not stop the rest from being written.
    """

    def __init__(self, location: str, cause: object) -> None:
        super().__init__(f"Failed to write {location}: {cause}")
        self.location = location
        self.cause = cause
