"""Deploy artifacts to a remote repository."""
from __future__ import annotations

import hashlib
import logging
import os
from typing import List, Optional, Tuple

from common.logging_utils import extra_context, safe_url, Timer
from constants import Constants
from errors import DeployError
from repository.local_path import relative_path_for
from transport.base import Transport, TransportError
from transport.router import TransportRouter

from .installer import install_plan
from .models import DeployArtifact

logger = logging.getLogger(__name__)

CHECKSUM_ALGORITHMS = (("sha1", hashlib.sha1), ("md5", hashlib.md5))


def checksums_of(path: str) -> List[Tuple[str, str]]:
    """(extension, hex digest) for each published checksum algorithm."""
    digests = [(ext, factory()) for ext, factory in CHECKSUM_ALGORITHMS]
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(Constants.DOWNLOAD_CHUNK_SIZE), b""):
            for _, digest in digests:
                digest.update(chunk)
    return [(ext, digest.hexdigest()) for ext, digest in digests]


class Deployer:
    """Uploads files through the transport; a failed upload is not retried."""

    def __init__(self, transport: Optional[Transport] = None) -> None:
        self.transport = transport if transport is not None else TransportRouter()

    def deploy(self, artifact: DeployArtifact) -> List[str]:
        """Upload the binary and optional descriptor, each followed by checksums.

        Returns:
            list[str]: repository-relative paths uploaded.

        Raises:
            DeployError: nothing to deploy, a missing source, or a rejected upload.
        """
        coordinate = artifact.coordinate
        repository = artifact.remote_repo
        plan = install_plan(coordinate, artifact.pom_path, artifact.file_path)
        if not plan:
            raise DeployError(f"Nothing to deploy for {coordinate}", notation=str(coordinate))
        for _, source in plan:
            if not os.path.isfile(source):
                raise DeployError(f"Deploy source not found: {source}", notation=str(coordinate))

        uploaded: List[str] = []
        with Timer() as timer:
            for target, source in plan:
                relative = relative_path_for(target)
                try:
                    self.transport.upload(repository, relative, source)
                    uploaded.append(relative)
                    for ext, digest in checksums_of(source):
                        self.transport.upload(repository, f"{relative}.{ext}", digest.encode("ascii"))
                        uploaded.append(f"{relative}.{ext}")
                except TransportError as exc:
                    logger.error(
                        "Deploy of %s to %s failed: %s",
                        target,
                        safe_url(repository.url),
                        exc,
                        extra=extra_context(
                            event="deploy", component="deployer", outcome="failure",
                            repository=repository.id, status_code=exc.status_code,
                        ),
                    )
                    raise DeployError(f"Failed to deploy {target} to {repository.id}: {exc}",
                                      notation=str(coordinate)) from exc
                except OSError as exc:
                    raise DeployError(f"Cannot read {source}: {exc}", notation=str(coordinate)) from exc

        logger.info(
            "Deployed %s to %s",
            coordinate,
            repository.id,
            extra=extra_context(
                event="deploy", component="deployer", outcome="success",
                repository=repository.id, count=len(uploaded), duration_ms=timer.duration_ms(),
            ),
        )
        return uploaded
