"""Naether facade: one object for embedding callers.

Composes the repository registry, the resolver, the local path resolver and
the install/deploy orchestrator behind a plain-data API (strings, lists and
dicts), so bindings never handle internal types.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from coordinates.models import Dependency, DependencyDeclaration
from coordinates.notation import generate
from deploy.deployer import Deployer
from deploy.installer import Installer
from deploy.models import DeployArtifact
from errors import ProjectError
from repository.local_path import LocalPathResolver
from repository.remote import RemoteRepository, RepositoryRegistry
from resolution.resolver import DependencyResolver
from transport.base import Transport
from transport.descriptor import DescriptorParseError, read_project_file
from transport.router import TransportRouter

logger = logging.getLogger(__name__)


class Naether:
    """Dependency resolution, install and deploy against Maven-layout repositories.

    Args:
        local_repo_path: Local repository root; defaults to M2_REPO or ~/.m2/repository.
        transport: Transport shared by resolution and deploy; defaults to a TransportRouter.
        download_workers: Thread pool size for artifact downloads.
    """

    def __init__(
        self,
        local_repo_path: Optional[str] = None,
        transport: Optional[Transport] = None,
        download_workers: Optional[int] = None,
    ) -> None:
        self.transport = transport if transport is not None else TransportRouter()
        self.registry = RepositoryRegistry(local_repo_path)
        self.resolver = DependencyResolver(self.registry, self.transport, download_workers=download_workers)
        self.deployer = Deployer(self.transport)

    # Repositories

    @property
    def local_repo_path(self) -> str:
        return self.registry.local_repo_path

    @local_repo_path.setter
    def local_repo_path(self, path: str) -> None:
        self.registry.local_repo_path = path

    def add_remote_repository(self, repo_id: str, layout: str, url: str) -> None:
        self.registry.add_remote_repository(repo_id, layout, url)

    def add_remote_repository_by_url(
        self, url: str, username: Optional[str] = None, password: Optional[str] = None
    ) -> str:
        """Register a repository by URL; returns the derived id."""
        return self.registry.add_remote_repository_by_url(url, username, password).id

    def clear_remote_repositories(self) -> None:
        self.registry.clear_remote_repositories()

    def remote_repositories(self) -> List[Dict[str, str]]:
        return [_repository_dict(repo) for repo in self.registry.remote_repositories]

    # Dependencies

    def add_dependency(self, notation: Union[str, Dependency], scope: Optional[str] = None) -> None:
        self.resolver.add_dependency(notation, scope)

    def add_dependencies(
        self,
        declarations: Iterable[Union[DependencyDeclaration, Mapping[str, Any]]],
        scopes: Optional[Iterable[str]] = None,
    ) -> None:
        self.resolver.add_dependencies_from_descriptors(declarations, scopes)

    def add_dependencies_from_pom(self, pom_path: str, scopes: Optional[Iterable[str]] = None) -> None:
        """Add the dependencies declared in a project POM.

        Raises:
            ProjectError: the file is missing or not a POM.
        """
        try:
            descriptor = read_project_file(pom_path)
        except (OSError, DescriptorParseError) as exc:
            logger.error("Cannot read project %s: %s", pom_path, exc)
            raise ProjectError(f"Failed to read project {pom_path}: {exc}") from exc
        self.resolver.add_dependencies_from_descriptors(descriptor.dependencies, scopes)

    def clear_dependencies(self) -> None:
        self.resolver.clear_dependencies()

    def dependencies(self) -> List[Dependency]:
        return self.resolver.dependencies

    def dependencies_notation(self) -> List[str]:
        """Notations of the current working set (resolved after a resolve)."""
        return [generate(dependency) for dependency in self.resolver.dependencies]

    def dependencies_path(self) -> Dict[str, str]:
        """Notation to local file, for entries that have a file."""
        return self.resolver.get_resolved_paths_by_notation()

    # Resolution

    def resolve_dependencies(
        self,
        download_artifacts: bool = True,
        properties: Optional[Mapping[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[str]:
        """Resolve the working set; returns the resolved notations in order."""
        self.resolver.resolve(download_artifacts, properties, cancel_event)
        return self.resolver.get_resolved_notations()

    def resolved_classpath(self) -> Optional[str]:
        return self.resolver.get_classpath()

    def local_paths(self, notations: Iterable[str]) -> List[str]:
        """Local repository paths for notations, without downloading anything.

        Raises:
            RepositoryManagerInitError: the local repository root is unusable.
            MalformedNotationError: a notation does not parse.
        """
        return LocalPathResolver(self.registry.local_repo_path).paths_for(notations)

    # Install / deploy

    def install(self, notation: str, pom_path: Optional[str] = None, file_path: Optional[str] = None) -> List[str]:
        return Installer(self.registry.local_repo_path).install(notation, pom_path, file_path)

    def deploy_artifact(self, artifact: DeployArtifact) -> List[str]:
        return self.deployer.deploy(artifact)

    def deploy(
        self,
        notation: str,
        file_path: Optional[str],
        remote_url: str,
        pom_path: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> List[str]:
        """Deploy from plain values; see DeployArtifact.create."""
        artifact = DeployArtifact.create(notation, file_path, remote_url, pom_path, username, password)
        return self.deployer.deploy(artifact)


def _repository_dict(repository: RemoteRepository) -> Dict[str, str]:
    return {"id": repository.id, "url": repository.url, "layout": repository.layout}


def dependency_dict(dependency: Dependency) -> Dict[str, Any]:
    """Plain-data view of a resolved dependency."""
    return {
        "notation": generate(dependency),
        "scope": dependency.scope.value,
        "optional": dependency.optional,
        "file": dependency.resolved_file,
        "exclusions": sorted(f"{ex.group}:{ex.artifact}" for ex in dependency.exclusions),
    }


__all__ = ["Naether", "dependency_dict"]
