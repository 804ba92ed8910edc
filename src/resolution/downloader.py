"""Artifact downloads into the local repository.

Writers of the local repository follow three rules:
- one writer per destination path at a time (per-path locks);
- bytes land in a temp file beside the destination and are renamed into
  place only after verification, so readers never see a partial file;
- an artifact already present with a matching checksum is a no-op.
"""
from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Sequence

from common.http_client import with_retries
from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Constants, Scope
from coordinates.models import Coordinate, Dependency
from errors import DependencyResolutionError
from repository.local_path import local_path_for
from repository.remote import RemoteRepository
from transport.base import ArtifactNotFound, Transport, TransportError

from .collector import check_cancelled
from .session import ResolutionSession

logger = logging.getLogger(__name__)

# Per-destination locks shared by every downloader and installer in the process.
_path_locks: Dict[str, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def path_lock(path: str) -> threading.Lock:
    """Lock guarding writes to one local-repository path."""
    key = os.path.normcase(os.path.abspath(path))
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _path_locks[key] = lock
        return lock


def sha1_of(path: str) -> str:
    digest = hashlib.sha1()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(Constants.DOWNLOAD_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def is_present(path: str) -> bool:
    """True when ``path`` exists and matches its .sha1 sidecar, if it has one."""
    if not os.path.isfile(path):
        return False
    sidecar = path + ".sha1"
    if not os.path.isfile(sidecar):
        return True
    with open(sidecar, "r", encoding="utf-8") as fh:
        recorded = fh.read().strip().split()
    return bool(recorded) and recorded[0].lower() == sha1_of(path)


class ChecksumMismatch(Exception):
    """Downloaded bytes do not match the repository's published SHA-1."""


class _HashingWriter:
    """File wrapper hashing everything written through it."""

    def __init__(self, fh) -> None:
        self._fh = fh
        self.digest = hashlib.sha1()

    def write(self, data: bytes) -> int:
        self.digest.update(data)
        return self._fh.write(data)


class ArtifactDownloader:
    """Fetches resolved dependencies into the local repository."""

    def __init__(self, transport: Transport, session: ResolutionSession) -> None:
        self.transport = transport
        self.session = session

    def download_all(
        self,
        dependencies: Sequence[Dependency],
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """Download every non-system dependency and attach its local file.

        Downloads run on a thread pool; the first failure stops pending work
        and is raised once running downloads finish.

        Raises:
            DependencyResolutionError: an artifact is missing, corrupt or unreachable.
            ResolutionCancelledError: ``cancel_event`` was set between downloads.
        """
        pending: List[Dependency] = []
        for dependency in dependencies:
            if dependency.scope is Scope.SYSTEM:
                if is_debug_enabled(logger):
                    logger.debug("Not downloading system dependency %s", dependency.coordinate)
                continue
            pending.append(dependency)
        if not pending:
            return

        with Timer() as timer:
            workers = max(1, min(self.session.download_workers, len(pending)))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="naether-download") as pool:
                futures = {
                    pool.submit(self.download, dependency.coordinate, cancel_event): dependency
                    for dependency in pending
                }
                done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
                failed = [f for f in done if f.exception() is not None]
                if failed:
                    for future in not_done:
                        future.cancel()
                    wait(not_done)
                    raise failed[0].exception()
                for future, dependency in futures.items():
                    dependency.resolved_file = future.result()

        logger.info(
            "Resolved %d artifacts",
            len(pending),
            extra=extra_context(
                event="download", component="downloader", count=len(pending), duration_ms=timer.duration_ms()
            ),
        )

    def download(self, coordinate: Coordinate, cancel_event: Optional[threading.Event] = None) -> str:
        """Make ``coordinate`` present in the local repository and return its path."""
        check_cancelled(cancel_event, "artifact download")
        dest = local_path_for(coordinate, self.session.local_repo_root)
        with path_lock(dest):
            if is_present(dest):
                if is_debug_enabled(logger):
                    logger.debug("Local hit %s -> %s", coordinate, dest)
                return dest

            last_error: Optional[TransportError] = None
            for repository in self.session.remote_repos:
                try:
                    with_retries(
                        lambda repo=repository: self._transfer(repo, coordinate, dest),
                        is_transient=lambda exc: isinstance(exc, TransportError) and exc.transient,
                        attempts=Constants.HTTP_RETRY_MAX,
                        base_delay=Constants.HTTP_RETRY_BASE_DELAY_SEC,
                        context=str(coordinate),
                        should_abort=cancel_event.is_set if cancel_event is not None else None,
                    )
                    return dest
                except ArtifactNotFound:
                    continue
                except ChecksumMismatch as exc:
                    logger.error("Checksum failure for %s from %s: %s", coordinate, repository.id, exc)
                    raise DependencyResolutionError(
                        f"Checksum validation failed for {coordinate} from {repository.id}: {exc}",
                        notation=str(coordinate),
                    ) from exc
                except TransportError as exc:
                    logger.warning("Download of %s from %s failed: %s", coordinate, repository.id, exc)
                    last_error = exc
                    continue

        searched = ", ".join(repo.id for repo in self.session.remote_repos) or "no remote repositories"
        message = f"Could not find artifact {coordinate} ({searched})"
        if last_error is not None:
            message = f"Could not transfer artifact {coordinate}: {last_error}"
        logger.error(message)
        raise DependencyResolutionError(message, notation=str(coordinate))

    def _transfer(self, repository: RemoteRepository, coordinate: Coordinate, dest: str) -> None:
        directory = os.path.dirname(dest)
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".part-", dir=directory)
        except OSError as exc:
            raise DependencyResolutionError(f"Cannot write into local repository {directory}: {exc}") from exc
        try:
            with os.fdopen(fd, "wb") as fh:
                writer = _HashingWriter(fh)
                published = self.transport.download(repository, coordinate, writer)
            actual = writer.digest.hexdigest()
            if published and published.lower() != actual:
                raise ChecksumMismatch(f"expected {published}, got {actual}")
            if not published:
                logger.warning("No checksum published for %s in %s", coordinate, repository.id)
            os.replace(tmp_path, dest)
            with open(dest + ".sha1", "w", encoding="utf-8") as sidecar:
                sidecar.write(actual)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
