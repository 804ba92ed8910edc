"""Deployment request model."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from coordinates.models import Coordinate
from coordinates.notation import to_coordinate
from repository.remote import Authentication, RemoteRepository, repository_id_from_url


@dataclass
class DeployArtifact:
    """A binary (and optionally its descriptor) bound for a remote repository."""

    coordinate: Coordinate
    file_path: Optional[str]
    remote_repo: RemoteRepository
    pom_path: Optional[str] = None

    @classmethod
    def create(
        cls,
        notation: Union[str, Coordinate],
        file_path: Optional[str],
        remote_url: str,
        pom_path: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "DeployArtifact":
        """Build from plain values; the repository id derives from its URL.

        Raises:
            MalformedNotationError: when the notation does not parse.
            InvalidURLError: when the repository URL is malformed.
        """
        auth = Authentication(username, password or "") if username else None
        repository = RemoteRepository(id=repository_id_from_url(remote_url), url=remote_url, auth=auth)
        return cls(
            coordinate=to_coordinate(notation),
            file_path=file_path,
            remote_repo=repository,
            pom_path=pom_path,
        )
