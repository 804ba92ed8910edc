"""Shared fixtures: an in-memory transport and a registry rooted in tmp_path."""

import hashlib
import logging
import threading
import time
from collections import defaultdict

import pytest

from constants import Constants
from coordinates.models import ArtifactDescriptor, DependencyDeclaration
from coordinates.notation import parse
from repository.remote import RepositoryRegistry
from transport.base import ArtifactNotFound


def decl(notation, scope="compile", optional=False, exclusions=(), system_path=None):
    """DependencyDeclaration from a notation."""
    coord = parse(notation)
    return DependencyDeclaration(
        group=coord.group,
        artifact=coord.artifact,
        version=coord.version,
        type=coord.type,
        classifier=coord.classifier,
        scope=scope,
        optional=optional,
        exclusions=list(exclusions),
        system_path=system_path,
    )


class FakeTransport:
    """Transport serving published artifacts from memory.

    ``fail(op, repo_id, notation, *errors)`` queues exceptions raised by the
    next calls of ``op`` ("descriptor" or "download") before normal service.
    """

    def __init__(self, download_delay=0.0):
        self.repos = defaultdict(dict)
        self.failures = defaultdict(list)
        self.descriptor_calls = []
        self.download_calls = []
        self.uploads = []
        self.download_delay = download_delay
        self._lock = threading.Lock()

    def publish(self, repo_id, notation, dependencies=(), content=None, sha1="auto"):
        coord = parse(notation)
        body = content if content is not None else f"binary of {notation}".encode()
        if sha1 == "auto":
            sha1 = hashlib.sha1(body).hexdigest()
        self.repos[repo_id][coord] = (list(dependencies), body, sha1)
        return coord

    def fail(self, op, repo_id, notation, *errors):
        self.failures[(op, repo_id, parse(notation) if notation else None)].extend(errors)

    def _maybe_fail(self, op, repo_id, coord):
        with self._lock:
            queued = self.failures.get((op, repo_id, coord))
            if queued:
                raise queued.pop(0)

    def _entry(self, repository, coordinate):
        entry = self.repos.get(repository.id, {}).get(coordinate)
        if entry is None:
            raise ArtifactNotFound(f"{coordinate} not in {repository.id}")
        return entry

    def get_descriptor(self, repository, coordinate, properties=None):
        with self._lock:
            self.descriptor_calls.append((repository.id, str(coordinate), dict(properties or {})))
        self._maybe_fail("descriptor", repository.id, coordinate)
        dependencies, _, _ = self._entry(repository, coordinate)
        return ArtifactDescriptor(coordinate=coordinate, dependencies=list(dependencies), repository_id=repository.id)

    def download(self, repository, coordinate, out):
        with self._lock:
            self.download_calls.append((repository.id, str(coordinate)))
        self._maybe_fail("download", repository.id, coordinate)
        _, body, sha1 = self._entry(repository, coordinate)
        if self.download_delay:
            time.sleep(self.download_delay)
        out.write(body)
        return sha1

    def upload(self, repository, relative_path, source):
        self._maybe_fail("upload", repository.id, None)
        self.uploads.append((repository.id, relative_path))


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def local_repo(tmp_path):
    return str(tmp_path / "m2")


@pytest.fixture
def registry(local_repo):
    return RepositoryRegistry(local_repo_path=local_repo)


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(Constants, "HTTP_RETRY_BASE_DELAY_SEC", 0)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_naether_handler", False) or isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
