"""Install artifacts into the local repository."""
from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple, Union

from common.logging_utils import extra_context
from constants import Constants
from coordinates.models import Coordinate
from coordinates.notation import to_coordinate
from errors import InstallError
from repository.local_path import local_path_for
from resolution.downloader import path_lock
from transport.file import atomic_write

logger = logging.getLogger(__name__)


def install_plan(
    coordinate: Coordinate,
    pom_path: Optional[str],
    file_path: Optional[str],
) -> List[Tuple[Coordinate, str]]:
    """What gets copied where: (coordinate, source file) pairs.

    A binary brings an optional pom sub-artifact sharing its group, artifact
    and version with an empty classifier; a descriptor on its own is
    installed with its type forced to pom.
    """
    if file_path:
        plan = [(coordinate, file_path)]
        if pom_path:
            plan.append((coordinate.with_type(Constants.POM_TYPE), pom_path))
        return plan
    if pom_path:
        return [(coordinate.with_type(Constants.POM_TYPE, coordinate.classifier), pom_path)]
    return []


class Installer:
    """Copies artifacts into a local repository root."""

    def __init__(self, local_repo_root: str) -> None:
        self.local_repo_root = local_repo_root

    def install(
        self,
        notation: Union[str, Coordinate],
        pom_path: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> List[str]:
        """Install a binary, its descriptor, or both.

        Re-installing the same coordinate overwrites the previous files.

        Returns:
            list[str]: local paths written, binary first.

        Raises:
            InstallError: nothing to install, a missing source or a failed copy.
            MalformedNotationError: when the notation does not parse.
        """
        coordinate = to_coordinate(notation)
        plan = install_plan(coordinate, pom_path, file_path)
        if not plan:
            raise InstallError(f"Nothing to install for {coordinate}", notation=str(coordinate))

        for _, source in plan:
            if not os.path.isfile(source):
                raise InstallError(f"Install source not found: {source}", notation=str(coordinate))

        written = []
        for target, source in plan:
            dest = local_path_for(target, self.local_repo_root)
            try:
                with path_lock(dest):
                    atomic_write(dest, source)
                    # A stale sidecar would make the local copy look corrupt.
                    sidecar = dest + ".sha1"
                    if os.path.exists(sidecar):
                        os.unlink(sidecar)
            except OSError as exc:
                logger.error("Install of %s failed: %s", target, exc)
                raise InstallError(f"Failed to install {target}: {exc}", notation=str(coordinate)) from exc
            written.append(dest)
            logger.info(
                "Installed %s",
                target,
                extra=extra_context(event="install", component="installer", notation=str(target), target=dest),
            )
        return written
