"""Default transport: dispatch by repository URL scheme."""
from __future__ import annotations

from typing import BinaryIO, Dict, Mapping, Optional, Union

from coordinates.models import ArtifactDescriptor, Coordinate
from repository.remote import RemoteRepository

from .base import Transport, TransportError
from .file import FileTransport
from .http import HttpTransport


class TransportRouter:
    """Routes file: repositories to FileTransport and http(s) to HttpTransport."""

    def __init__(self, transports: Optional[Dict[str, Transport]] = None) -> None:
        if transports is None:
            http = HttpTransport()
            transports = {"file": FileTransport(), "http": http, "https": http}
        self._transports = dict(transports)

    def register(self, scheme: str, transport: Transport) -> None:
        self._transports[scheme.lower()] = transport

    def for_repository(self, repository: RemoteRepository) -> Transport:
        try:
            return self._transports[repository.scheme]
        except KeyError as exc:
            raise TransportError(f"No transport for scheme '{repository.scheme}' ({repository.id})") from exc

    def get_descriptor(
        self,
        repository: RemoteRepository,
        coordinate: Coordinate,
        properties: Optional[Mapping[str, str]] = None,
    ) -> ArtifactDescriptor:
        return self.for_repository(repository).get_descriptor(repository, coordinate, properties)

    def download(self, repository: RemoteRepository, coordinate: Coordinate, out: BinaryIO) -> Optional[str]:
        return self.for_repository(repository).download(repository, coordinate, out)

    def upload(self, repository: RemoteRepository, relative_path: str, source: Union[str, bytes]) -> None:
        self.for_repository(repository).upload(repository, relative_path, source)
