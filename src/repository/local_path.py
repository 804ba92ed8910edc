"""Local repository layout.

Path rule, relied upon by other tools and therefore bit-exact:
  root/<group with dots as slashes>/<artifact>/<version>/<artifact>-<version>[-<classifier>].<type>
"""
from __future__ import annotations

import logging
import os
from typing import Iterable, List, Union

from coordinates.models import Coordinate, Dependency
from coordinates.notation import to_coordinate
from errors import RepositoryManagerInitError

logger = logging.getLogger(__name__)


def relative_path_for(coordinate: Coordinate) -> str:
    """Repository-relative path of an artifact, with "/" separators."""
    filename = f"{coordinate.artifact}-{coordinate.version}"
    if coordinate.classifier:
        filename += f"-{coordinate.classifier}"
    filename += f".{coordinate.type}"
    return "/".join(
        [coordinate.group.replace(".", "/"), coordinate.artifact, coordinate.version, filename]
    )


def local_path_for(coordinate: Union[Coordinate, Dependency, str], local_repo_root: str) -> str:
    """Pure function: where ``coordinate`` lives under ``local_repo_root``."""
    relative = relative_path_for(to_coordinate(coordinate))
    return os.path.join(local_repo_root, *relative.split("/"))


class LocalPathResolver:
    """Computes local-repository paths for a fixed root."""

    def __init__(self, local_repo_root: str) -> None:
        self.local_repo_root = os.path.abspath(local_repo_root)

    def ensure_usable(self) -> None:
        """Create the root if needed.

        Raises:
            RepositoryManagerInitError: root exists as a file or cannot be created.
        """
        root = self.local_repo_root
        if os.path.exists(root) and not os.path.isdir(root):
            raise RepositoryManagerInitError(
                f"Failed to initialize local repository manager: {root} is not a directory"
            )
        try:
            os.makedirs(root, exist_ok=True)
        except OSError as exc:
            logger.error("Local repository %s unusable: %s", root, exc)
            raise RepositoryManagerInitError(
                f"Failed to initialize local repository manager at {root}: {exc}"
            ) from exc
        if not os.access(root, os.W_OK):
            raise RepositoryManagerInitError(
                f"Failed to initialize local repository manager: {root} is not writable"
            )

    def path_for(self, coordinate: Union[Coordinate, Dependency, str]) -> str:
        return local_path_for(coordinate, self.local_repo_root)

    def paths_for(self, notations: Iterable[str]) -> List[str]:
        """Local paths for notations, after checking the root is usable."""
        self.ensure_usable()
        return [self.path_for(notation) for notation in notations]
