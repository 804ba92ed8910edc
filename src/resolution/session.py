"""Per-call resolution configuration."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

from constants import Constants
from repository.remote import RemoteRepository

from .selectors import DependencySelector, default_selector


@dataclass(frozen=True)
class ResolutionSession:
    """Immutable settings for one ``resolve`` call; never persisted."""

    local_repo_root: str
    local_repository: RemoteRepository
    remote_repos: Tuple[RemoteRepository, ...]
    download_artifacts: bool = True
    user_properties: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    selector: DependencySelector = field(default_factory=default_selector)
    download_workers: int = Constants.DOWNLOAD_WORKERS

    @classmethod
    def create(
        cls,
        local_repo_root: str,
        local_repository: RemoteRepository,
        remote_repos: Sequence[RemoteRepository],
        download_artifacts: bool = True,
        user_properties: Optional[Mapping[str, str]] = None,
        selector: Optional[DependencySelector] = None,
        download_workers: Optional[int] = None,
    ) -> "ResolutionSession":
        return cls(
            local_repo_root=local_repo_root,
            local_repository=local_repository,
            remote_repos=tuple(remote_repos),
            download_artifacts=download_artifacts,
            user_properties=MappingProxyType(dict(user_properties or {})),
            selector=selector or default_selector(),
            download_workers=download_workers or Constants.DOWNLOAD_WORKERS,
        )

    @property
    def repositories(self) -> Tuple[RemoteRepository, ...]:
        """Collect-request repositories: local repository first, then remotes."""
        return (self.local_repository,) + self.remote_repos
