"""Transport for file: repositories, including the local repository."""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
import urllib.parse
import urllib.request
from typing import BinaryIO, Mapping, Optional, Union

from coordinates.models import ArtifactDescriptor, Coordinate
from constants import Constants
from repository.local_path import relative_path_for
from repository.remote import RemoteRepository

from .base import ArtifactNotFound, TransportError
from .descriptor import DescriptorParseError, read_descriptor

logger = logging.getLogger(__name__)


def repository_root(repository: RemoteRepository) -> str:
    """Filesystem directory behind a file: repository URL."""
    parts = urllib.parse.urlsplit(repository.url)
    return urllib.request.url2pathname(parts.path)


def read_sha1_file(path: str) -> Optional[str]:
    """Read a .sha1 sidecar; only the first token counts."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            content = fh.read().strip()
    except FileNotFoundError:
        return None
    return content.split()[0].lower() if content else None


def atomic_write(dest: str, source: Union[str, bytes]) -> None:
    """Write a file path or bytes to ``dest`` through a temp file and rename."""
    directory = os.path.dirname(dest)
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".part-", dir=directory)
    try:
        with os.fdopen(fd, "wb") as out:
            if isinstance(source, bytes):
                out.write(source)
            else:
                with open(source, "rb") as src:
                    shutil.copyfileobj(src, out, Constants.DOWNLOAD_CHUNK_SIZE)
        os.replace(tmp_path, dest)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class FileTransport:
    """Reads and writes a default-layout repository on disk."""

    def _path(self, repository: RemoteRepository, coordinate: Coordinate) -> str:
        return os.path.join(repository_root(repository), *relative_path_for(coordinate).split("/"))

    def get_descriptor(
        self,
        repository: RemoteRepository,
        coordinate: Coordinate,
        properties: Optional[Mapping[str, str]] = None,
    ) -> ArtifactDescriptor:
        pom_path = self._path(repository, coordinate.with_type(Constants.POM_TYPE))
        try:
            with open(pom_path, "r", encoding="utf-8") as fh:
                text = fh.read()
        except FileNotFoundError as exc:
            raise ArtifactNotFound(f"{coordinate} descriptor not found in {repository.id}") from exc
        except OSError as exc:
            raise TransportError(f"Cannot read {pom_path}: {exc}") from exc
        try:
            return read_descriptor(coordinate, text, properties, repository_id=repository.id)
        except DescriptorParseError as exc:
            raise TransportError(str(exc)) from exc

    def download(self, repository: RemoteRepository, coordinate: Coordinate, out: BinaryIO) -> Optional[str]:
        path = self._path(repository, coordinate)
        try:
            with open(path, "rb") as src:
                shutil.copyfileobj(src, out, Constants.DOWNLOAD_CHUNK_SIZE)
        except FileNotFoundError as exc:
            raise ArtifactNotFound(f"{coordinate} not found in {repository.id}") from exc
        except OSError as exc:
            raise TransportError(f"Cannot read {path}: {exc}") from exc
        return read_sha1_file(path + ".sha1")

    def upload(self, repository: RemoteRepository, relative_path: str, source: Union[str, bytes]) -> None:
        dest = os.path.join(repository_root(repository), *relative_path.split("/"))
        try:
            atomic_write(dest, source)
        except OSError as exc:
            raise TransportError(f"Cannot write {dest}: {exc}") from exc
        logger.debug("Stored %s in %s", relative_path, repository.id)
