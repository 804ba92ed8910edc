"""Error taxonomy for resolution, install and deploy.

Every error raised by the core is a ``NaetherError`` tagged with an
``ErrorKind``. Each kind also has a flat subclass so callers can catch either
the tag (``err.kind is ErrorKind.INSTALL``) or the class (``InstallError``).
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Tag carried by every NaetherError."""

    MALFORMED_NOTATION = "malformed_notation"
    INVALID_URL = "invalid_url"
    DEPENDENCY_COLLECTION = "dependency_collection"
    DEPENDENCY_RESOLUTION = "dependency_resolution"
    REPOSITORY_MANAGER_INIT = "repository_manager_init"
    INSTALL = "install"
    DEPLOY = "deploy"
    CANCELLED = "cancelled"
    CONFIG = "config"
    PROJECT = "project"


class NaetherError(Exception):
    """Base error; ``kind`` identifies the failure."""

    kind: ErrorKind = ErrorKind.DEPENDENCY_RESOLUTION

    def __init__(self, message: str, *, notation: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.notation = notation

    def to_dict(self) -> dict:
        """Plain-data view for embedding callers."""
        return {"kind": self.kind.value, "message": self.message, "notation": self.notation}


class MalformedNotationError(NaetherError, ValueError):
    """Coordinate string does not match group:artifact[:type[:classifier]]:version."""

    kind = ErrorKind.MALFORMED_NOTATION


class InvalidURLError(NaetherError, ValueError):
    """Repository URL could not be parsed."""

    kind = ErrorKind.INVALID_URL


class DependencyCollectionError(NaetherError):
    """No repository could supply a descriptor for a node of the graph."""

    kind = ErrorKind.DEPENDENCY_COLLECTION


class DependencyResolutionError(NaetherError):
    """An artifact could not be downloaded or verified."""

    kind = ErrorKind.DEPENDENCY_RESOLUTION


class ResolutionCancelledError(NaetherError):
    """Resolution was aborted through its cancel event."""

    kind = ErrorKind.CANCELLED


class RepositoryManagerInitError(NaetherError):
    """Local repository root is unusable."""

    kind = ErrorKind.REPOSITORY_MANAGER_INIT


class InstallError(NaetherError):
    """Artifact could not be installed into the local repository."""

    kind = ErrorKind.INSTALL


class DeployError(NaetherError):
    """Artifact could not be deployed to a remote repository."""

    kind = ErrorKind.DEPLOY


class ConfigError(NaetherError):
    """Configuration file missing or invalid."""

    kind = ErrorKind.CONFIG


class ProjectError(NaetherError):
    """Project descriptor file could not be read."""

    kind = ErrorKind.PROJECT
