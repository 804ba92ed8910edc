"""Tests for the file and HTTP transports and the scheme router."""

import hashlib
import io
from unittest.mock import MagicMock

import pytest
import requests

from coordinates.models import Coordinate
from repository.remote import Authentication, RemoteRepository
from transport.base import ArtifactNotFound, TransportError
from transport.file import FileTransport, atomic_write, read_sha1_file
from transport.http import HttpTransport
from transport.router import TransportRouter

COORD = Coordinate("org.example", "lib", "1.0")
POM = """<project><dependencies><dependency>
<groupId>org.dep</groupId><artifactId>dep</artifactId><version>3</version>
</dependency></dependencies></project>"""


@pytest.fixture
def file_repo(tmp_path):
    root = tmp_path / "remote"
    base = root / "org" / "example" / "lib" / "1.0"
    base.mkdir(parents=True)
    (base / "lib-1.0.pom").write_text(POM, encoding="utf-8")
    (base / "lib-1.0.jar").write_bytes(b"jar bytes")
    (base / "lib-1.0.jar.sha1").write_text(hashlib.sha1(b"jar bytes").hexdigest() + "  lib-1.0.jar\n")
    return RemoteRepository(id="files", url=root.as_uri())


class TestFileTransport:
    """file: repositories."""

    def test_descriptor(self, file_repo):
        descriptor = FileTransport().get_descriptor(file_repo, COORD)
        assert [(d.group, d.artifact, d.version) for d in descriptor.dependencies] == [("org.dep", "dep", "3")]

    def test_descriptor_missing(self, file_repo):
        with pytest.raises(ArtifactNotFound):
            FileTransport().get_descriptor(file_repo, Coordinate("org.example", "other", "1"))

    def test_download_returns_published_sha1(self, file_repo):
        out = io.BytesIO()
        sha1 = FileTransport().download(file_repo, COORD, out)
        assert out.getvalue() == b"jar bytes"
        assert sha1 == hashlib.sha1(b"jar bytes").hexdigest()

    def test_download_missing(self, file_repo):
        with pytest.raises(ArtifactNotFound):
            FileTransport().download(file_repo, COORD.with_type("war"), io.BytesIO())

    def test_upload(self, file_repo, tmp_path):
        FileTransport().upload(file_repo, "a/b/1/b-1.jar", b"payload")
        assert (tmp_path / "remote" / "a" / "b" / "1" / "b-1.jar").read_bytes() == b"payload"


def test_atomic_write_copies_file(tmp_path):
    source = tmp_path / "src.bin"
    source.write_bytes(b"data")
    dest = tmp_path / "deep" / "dir" / "dest.bin"
    atomic_write(str(dest), str(source))
    assert dest.read_bytes() == b"data"
    assert [p.name for p in dest.parent.iterdir()] == ["dest.bin"]


def test_atomic_write_cleans_up_on_failure(tmp_path):
    dest = tmp_path / "out" / "dest.bin"
    with pytest.raises(FileNotFoundError):
        atomic_write(str(dest), str(tmp_path / "missing"))
    assert list(dest.parent.iterdir()) == []


def test_read_sha1_file(tmp_path):
    sidecar = tmp_path / "x.sha1"
    sidecar.write_text("ABCDEF  x.jar")
    assert read_sha1_file(str(sidecar)) == "abcdef"
    assert read_sha1_file(str(tmp_path / "none.sha1")) is None


def response(status, text="", chunks=None):
    res = MagicMock()
    res.status_code = status
    res.text = text
    res.iter_content.return_value = chunks or []
    return res


REPO = RemoteRepository(id="remote", url="https://repo.example.com/maven2",
                        auth=Authentication("user", "pw"))


class TestHttpTransport:
    """HTTP status mapping and streaming."""

    def test_descriptor_url_and_auth(self):
        session = MagicMock()
        session.request.return_value = response(200, POM)
        descriptor = HttpTransport(session).get_descriptor(REPO, COORD)

        args, kwargs = session.request.call_args
        assert args == ("GET", "https://repo.example.com/maven2/org/example/lib/1.0/lib-1.0.pom")
        assert kwargs["auth"] == ("user", "pw")
        assert kwargs["timeout"] == (10, 30)
        assert descriptor.dependencies[0].artifact == "dep"

    @pytest.mark.parametrize("status", [404, 410])
    def test_not_found(self, status):
        session = MagicMock()
        session.request.return_value = response(status)
        with pytest.raises(ArtifactNotFound):
            HttpTransport(session).get_descriptor(REPO, COORD)

    @pytest.mark.parametrize("status, transient", [(401, False), (403, False), (500, True), (503, True), (429, True)])
    def test_error_statuses(self, status, transient):
        session = MagicMock()
        session.request.return_value = response(status)
        with pytest.raises(TransportError) as excinfo:
            HttpTransport(session).get_descriptor(REPO, COORD)
        assert excinfo.value.transient is transient
        assert excinfo.value.status_code == status

    def test_connection_error_is_transient(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("reset")
        with pytest.raises(TransportError) as excinfo:
            HttpTransport(session).get_descriptor(REPO, COORD)
        assert excinfo.value.transient

    def test_download_streams_and_fetches_sha1(self):
        session = MagicMock()
        session.request.side_effect = [
            response(200, chunks=[b"jar ", b"", b"bytes"]),
            response(200, text="ABC123  lib-1.0.jar"),
        ]
        out = io.BytesIO()

        sha1 = HttpTransport(session).download(REPO, COORD, out)

        assert out.getvalue() == b"jar bytes"
        assert sha1 == "abc123"
        assert session.request.call_args_list[1][0][1].endswith("lib-1.0.jar.sha1")

    def test_download_without_published_sha1(self):
        session = MagicMock()
        session.request.side_effect = [response(200, chunks=[b"x"]), response(404)]
        assert HttpTransport(session).download(REPO, COORD, io.BytesIO()) is None

    def test_upload_puts_bytes(self):
        session = MagicMock()
        session.request.return_value = response(201)
        HttpTransport(session).upload(REPO, "org/example/lib/1.0/lib-1.0.jar.sha1", b"abc")
        args, kwargs = session.request.call_args
        assert args[0] == "PUT"
        assert kwargs["data"] == b"abc"

    def test_upload_rejected(self):
        session = MagicMock()
        session.request.return_value = response(401)
        with pytest.raises(TransportError) as excinfo:
            HttpTransport(session).upload(REPO, "x.jar", b"abc")
        assert not excinfo.value.transient


class TestRouter:
    """Dispatch by URL scheme."""

    def test_routes_file_and_http(self, file_repo):
        http = MagicMock()
        router = TransportRouter({"file": FileTransport(), "https": http})
        assert isinstance(router.for_repository(file_repo), FileTransport)
        assert router.for_repository(REPO) is http

    def test_unknown_scheme(self):
        router = TransportRouter({})
        with pytest.raises(TransportError):
            router.for_repository(REPO)

    def test_delegates_download(self, file_repo):
        out = io.BytesIO()
        TransportRouter().download(file_repo, COORD, out)
        assert out.getvalue() == b"jar bytes"
