"""Transport collaborator contract.

A transport knows how to read descriptors and artifact bytes from a
repository and how to upload files to it. The resolver and the deployer take
a transport as a constructor argument; nothing looks one up globally.
"""
from __future__ import annotations

from typing import BinaryIO, Mapping, Optional, Protocol, Union, runtime_checkable

from coordinates.models import ArtifactDescriptor, Coordinate
from repository.remote import RemoteRepository


class TransportError(Exception):
    """Transfer failed.

    ``transient`` marks failures worth retrying (timeouts, connection resets,
    5xx answers); authorization failures and the like are not.
    """

    def __init__(self, message: str, *, transient: bool = False, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.transient = transient
        self.status_code = status_code


class ArtifactNotFound(TransportError):
    """Repository does not have the requested file."""

    def __init__(self, message: str, *, status_code: Optional[int] = 404) -> None:
        super().__init__(message, transient=False, status_code=status_code)


@runtime_checkable
class Transport(Protocol):
    """Pluggable transport."""

    def get_descriptor(
        self,
        repository: RemoteRepository,
        coordinate: Coordinate,
        properties: Optional[Mapping[str, str]] = None,
    ) -> ArtifactDescriptor:
        """Return the descriptor of ``coordinate`` or raise ArtifactNotFound."""

    def download(self, repository: RemoteRepository, coordinate: Coordinate, out: BinaryIO) -> Optional[str]:
        """Stream the artifact into ``out``; return the published SHA-1 if any."""

    def upload(self, repository: RemoteRepository, relative_path: str, source: Union[str, bytes]) -> None:
        """Store a file path or raw bytes at ``relative_path`` in the repository."""
