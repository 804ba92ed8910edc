"""Repository registry: local repository root plus ordered remote repositories."""
from __future__ import annotations

import logging
import os
import re
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from common.logging_utils import extra_context, is_debug_enabled, safe_url
from constants import Constants
from errors import InvalidURLError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Authentication:
    """Basic credentials for a remote repository."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Authentication(username={self.username!r}, password='[REDACTED]')"


@dataclass(frozen=True)
class RemoteRepository:
    """A network-addressable (or file:) source of descriptors and artifacts."""

    id: str
    url: str
    layout: str = Constants.DEFAULT_LAYOUT
    auth: Optional[Authentication] = None

    @property
    def scheme(self) -> str:
        return urllib.parse.urlsplit(self.url).scheme.lower()

    @property
    def base_url(self) -> str:
        return self.url if self.url.endswith("/") else self.url + "/"

    def __str__(self) -> str:
        return f"{self.id} ({safe_url(self.url)}, {self.layout})"


def validate_url(url: str) -> urllib.parse.SplitResult:
    """Check a repository URL and return its parts.

    Raises:
        InvalidURLError: unsupported scheme, missing host or missing path.
    """
    if not isinstance(url, str) or not url.strip() or any(ch.isspace() for ch in url.strip()):
        raise InvalidURLError(f"Malformed url: {url!r}")
    try:
        parts = urllib.parse.urlsplit(url.strip())
        # Accessing the port validates it.
        _ = parts.port
    except ValueError as exc:
        raise InvalidURLError(f"Malformed url: {url!r}: {exc}") from exc
    scheme = parts.scheme.lower()
    if scheme not in Constants.SUPPORTED_SCHEMES:
        raise InvalidURLError(
            f"Malformed url: {url!r}, scheme must be one of {', '.join(Constants.SUPPORTED_SCHEMES)}"
        )
    if scheme == "file":
        if not parts.path:
            raise InvalidURLError(f"Malformed url: {url!r}, file url without path")
    elif not parts.hostname:
        raise InvalidURLError(f"Malformed url: {url!r}, missing host")
    return parts


def repository_id_from_url(url: str) -> str:
    """Derive a stable repository id from host, port and path.

    ``http://repo.example.com:8081/maven2/`` becomes
    ``repo.example.com-8081-maven2``.
    """
    parts = validate_url(url)
    pieces = []
    if parts.hostname:
        pieces.append(parts.hostname)
    if parts.port:
        pieces.append(str(parts.port))
    pieces.extend(p for p in parts.path.split("/") if p)
    repo_id = "-".join(pieces)
    return re.sub(r"[^A-Za-z0-9._-]", "_", repo_id) or parts.scheme


def default_local_repo_path() -> str:
    """M2_REPO when set, else ~/.m2/repository; always absolute."""
    env_path = os.environ.get(Constants.ENV_LOCAL_REPO)
    if env_path:
        return os.path.abspath(os.path.expanduser(env_path))
    return os.path.abspath(os.path.join(os.path.expanduser("~"), ".m2", "repository"))


class RepositoryRegistry:
    """Holds the local repository root and the ordered remote repositories.

    Priority is declaration order. The registry starts with the central
    repository; ``clear_remote_repositories`` removes it too, which allows
    fully private configurations.
    """

    def __init__(self, local_repo_path: Optional[str] = None, seed_central: bool = True) -> None:
        self._local_repo_path = default_local_repo_path()
        if local_repo_path:
            self.local_repo_path = local_repo_path
        self._remote_repositories: List[RemoteRepository] = []
        if seed_central:
            self.add_remote_repository(
                Constants.CENTRAL_REPO_ID, Constants.DEFAULT_LAYOUT, Constants.CENTRAL_REPO_URL
            )

    @property
    def local_repo_path(self) -> str:
        return self._local_repo_path

    @local_repo_path.setter
    def local_repo_path(self, path: str) -> None:
        self._local_repo_path = os.path.abspath(os.path.expanduser(path))

    def set_local_repo_path(self, path: str) -> None:
        self.local_repo_path = path

    def get_local_repo_path(self) -> str:
        return self.local_repo_path

    @property
    def remote_repositories(self) -> List[RemoteRepository]:
        return list(self._remote_repositories)

    def add_remote_repository(
        self,
        repo_id: str,
        layout: str = Constants.DEFAULT_LAYOUT,
        url: str = "",
        auth: Optional[Authentication] = None,
    ) -> RemoteRepository:
        """Register a repository; an existing id is replaced in place."""
        validate_url(url)
        repo = RemoteRepository(id=repo_id, url=url, layout=layout or Constants.DEFAULT_LAYOUT, auth=auth)
        for index, existing in enumerate(self._remote_repositories):
            if existing.id == repo_id:
                self._remote_repositories[index] = repo
                logger.debug("Replaced remote repository %s", repo)
                return repo
        self._remote_repositories.append(repo)
        if is_debug_enabled(logger):
            logger.debug(
                "Added remote repository",
                extra=extra_context(
                    event="repository_added",
                    component="registry",
                    repository=repo_id,
                    target=safe_url(url),
                ),
            )
        return repo

    def add_remote_repository_by_url(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> RemoteRepository:
        """Register a repository whose id is derived from its URL.

        Raises:
            InvalidURLError: when the URL does not parse.
        """
        try:
            repo_id = repository_id_from_url(url)
        except InvalidURLError:
            logger.error("Malformed url: %s", safe_url(str(url)))
            raise
        auth = Authentication(username, password or "") if username else None
        return self.add_remote_repository(repo_id, Constants.DEFAULT_LAYOUT, url, auth=auth)

    def clear_remote_repositories(self) -> None:
        self._remote_repositories = []

    def local_repository(self) -> RemoteRepository:
        """The local repository expressed as a file: repository."""
        url = Path(self._local_repo_path).as_uri()
        return RemoteRepository(id=Constants.LOCAL_REPO_ID, url=url, layout=Constants.DEFAULT_LAYOUT)
