"""HTTP(S) transport for default-layout remote repositories."""
from __future__ import annotations

import logging
from typing import BinaryIO, Mapping, Optional, Union

import requests

from common import http_client
from common.logging_utils import safe_url
from constants import Constants
from coordinates.models import ArtifactDescriptor, Coordinate
from repository.local_path import relative_path_for
from repository.remote import RemoteRepository

from .base import ArtifactNotFound, TransportError
from .descriptor import DescriptorParseError, read_descriptor

logger = logging.getLogger(__name__)


def _check_status(res: requests.Response, url: str) -> None:
    """Map an HTTP status onto transport errors."""
    status = res.status_code
    if status < 400:
        return
    if status in (404, 410):
        raise ArtifactNotFound(f"Not found: {safe_url(url)}", status_code=status)
    if status in (401, 403):
        raise TransportError(f"Not authorized ({status}): {safe_url(url)}", status_code=status)
    transient = status >= 500 or status in (408, 429)
    raise TransportError(f"HTTP {status}: {safe_url(url)}", transient=transient, status_code=status)


class HttpTransport:
    """Repository access over requests with basic auth and timeouts."""

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self._session = session or http_client.new_session()

    def _url(self, repository: RemoteRepository, relative_path: str) -> str:
        return repository.base_url + relative_path

    def _auth(self, repository: RemoteRepository):
        if repository.auth is None:
            return None
        return (repository.auth.username, repository.auth.password)

    def _get(self, repository: RemoteRepository, url: str, **kwargs) -> requests.Response:
        try:
            res = http_client.safe_request(
                self._session, "GET", url, context=repository.id, auth=self._auth(repository), **kwargs
            )
        except requests.RequestException as exc:
            raise TransportError(f"GET {safe_url(url)} failed: {exc}", transient=True) from exc
        _check_status(res, url)
        return res

    def get_descriptor(
        self,
        repository: RemoteRepository,
        coordinate: Coordinate,
        properties: Optional[Mapping[str, str]] = None,
    ) -> ArtifactDescriptor:
        url = self._url(repository, relative_path_for(coordinate.with_type(Constants.POM_TYPE)))
        res = self._get(repository, url)
        try:
            return read_descriptor(coordinate, res.text, properties, repository_id=repository.id)
        except DescriptorParseError as exc:
            raise TransportError(str(exc)) from exc

    def fetch_sha1(self, repository: RemoteRepository, coordinate: Coordinate) -> Optional[str]:
        """Published SHA-1 of an artifact, or None when the repository has none."""
        url = self._url(repository, relative_path_for(coordinate)) + ".sha1"
        try:
            res = self._get(repository, url)
        except ArtifactNotFound:
            return None
        text = res.text.strip()
        return text.split()[0].lower() if text else None

    def download(self, repository: RemoteRepository, coordinate: Coordinate, out: BinaryIO) -> Optional[str]:
        url = self._url(repository, relative_path_for(coordinate))
        res = self._get(repository, url, stream=True)
        try:
            for chunk in res.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                if chunk:
                    out.write(chunk)
        except requests.RequestException as exc:
            raise TransportError(f"Transfer of {safe_url(url)} interrupted: {exc}", transient=True) from exc
        finally:
            res.close()
        logger.info("Downloaded %s from %s", coordinate, repository.id)
        return self.fetch_sha1(repository, coordinate)

    def upload(self, repository: RemoteRepository, relative_path: str, source: Union[str, bytes]) -> None:
        url = self._url(repository, relative_path)
        try:
            if isinstance(source, bytes):
                res = http_client.safe_request(
                    self._session, "PUT", url, context=repository.id, auth=self._auth(repository), data=source
                )
            else:
                with open(source, "rb") as fh:
                    res = http_client.safe_request(
                        self._session, "PUT", url, context=repository.id, auth=self._auth(repository), data=fh
                    )
        except requests.RequestException as exc:
            raise TransportError(f"PUT {safe_url(url)} failed: {exc}", transient=True) from exc
        except OSError as exc:
            raise TransportError(f"Cannot read {source}: {exc}") from exc
        _check_status(res, url)
        logger.info("Uploaded %s to %s", relative_path, repository.id)
