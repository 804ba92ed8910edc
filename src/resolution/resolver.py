"""Dependency resolution: working set in, ordered resolved artifacts out."""
from __future__ import annotations

import logging
import os
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Scope
from coordinates.models import Coordinate, Dependency, DependencyDeclaration
from coordinates.notation import generate, parse
from repository.remote import RepositoryRegistry
from transport.base import Transport
from transport.router import TransportRouter

from .collector import DependencyCollector, check_cancelled
from .downloader import ArtifactDownloader
from .flatten import flatten
from .session import ResolutionSession

logger = logging.getLogger(__name__)

DependencyInput = Union[str, Coordinate, Dependency]


class DependencyResolver:
    """Holds the working set of dependencies and resolves it on demand.

    ``resolve`` builds a fresh ``ResolutionSession`` from the registry, collects
    the graph, optionally downloads, flattens and finally swaps the result in.
    Until that final swap nothing visible changes, so a failed resolve leaves
    the previous state intact.
    """

    def __init__(
        self,
        registry: RepositoryRegistry,
        transport: Optional[Transport] = None,
        download_workers: Optional[int] = None,
    ) -> None:
        self.registry = registry
        self.transport = transport if transport is not None else TransportRouter()
        self.download_workers = download_workers
        self._dependencies: List[Dependency] = []
        self._resolved: Optional[List[Dependency]] = None

    @property
    def dependencies(self) -> List[Dependency]:
        """Current working set (a copy)."""
        return list(self._dependencies)

    def add_dependency(self, dependency: DependencyInput, scope: Optional[Union[str, Scope]] = None) -> Dependency:
        """Append to the working set.

        A notation or Coordinate defaults to compile scope; a Dependency keeps
        its own scope unless ``scope`` is given.

        Raises:
            MalformedNotationError: when a notation does not parse.
        """
        if isinstance(dependency, Dependency):
            added = dependency.copy(scope=Scope.parse(scope)) if scope is not None else dependency.copy()
        else:
            coordinate = dependency if isinstance(dependency, Coordinate) else parse(dependency)
            added = Dependency(coordinate=coordinate, scope=Scope.parse(scope))
        if is_debug_enabled(logger):
            logger.debug("Add dependency: %s (%s)", added.coordinate, added.scope.value)
        self._dependencies.append(added)
        return added

    def add_dependencies_from_descriptors(
        self,
        declarations: Iterable[Union[DependencyDeclaration, Mapping[str, Any]]],
        scope_filter: Optional[Iterable[Union[str, Scope]]] = None,
    ) -> List[Dependency]:
        """Append declarations supplied by a project-model reader.

        Args:
            declarations: DependencyDeclaration objects or equivalent mappings.
            scope_filter: Scopes to keep; None keeps every declaration.

        Returns:
            list[Dependency]: the dependencies that were added.
        """
        allowed = None if scope_filter is None else {Scope.parse(s) for s in scope_filter}
        added: List[Dependency] = []
        for declaration in declarations:
            if not isinstance(declaration, DependencyDeclaration):
                declaration = DependencyDeclaration.from_mapping(declaration)
            dependency = declaration.to_dependency()
            if allowed is not None and dependency.scope not in allowed:
                continue
            self._dependencies.append(dependency)
            added.append(dependency)
        logger.debug("Added %d of the declared dependencies", len(added))
        return added

    def clear_dependencies(self) -> None:
        self._dependencies = []

    def session(
        self,
        download_artifacts: bool = True,
        extra_properties: Optional[Mapping[str, str]] = None,
    ) -> ResolutionSession:
        """Snapshot of the registry for one resolve call."""
        return ResolutionSession.create(
            local_repo_root=self.registry.local_repo_path,
            local_repository=self.registry.local_repository(),
            remote_repos=self.registry.remote_repositories,
            download_artifacts=download_artifacts,
            user_properties=extra_properties,
            download_workers=self.download_workers,
        )

    def resolve(
        self,
        download_artifacts: bool = True,
        extra_properties: Optional[Mapping[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Dependency]:
        """Resolve the working set transitively.

        Args:
            download_artifacts: Fetch every selected artifact into the local repository.
            extra_properties: User properties used when interpolating descriptors.
            cancel_event: Checked between expansion steps and between downloads.

        Returns:
            list[Dependency]: flattened result in pre-order, which also becomes
            the new working set.

        Raises:
            DependencyCollectionError: a descriptor could not be found.
            DependencyResolutionError: an artifact could not be downloaded or verified.
            ResolutionCancelledError: ``cancel_event`` was set.
        """
        logger.info("Resolving Dependencies")
        session = self.session(download_artifacts, extra_properties)
        if is_debug_enabled(logger):
            logger.debug("Local Repo Path: %s", session.local_repo_root)
            logger.debug("Remote Repositories:")
            for repository in session.remote_repos:
                logger.debug("  %s", repository)

        with Timer() as timer:
            graph = DependencyCollector(self.transport).collect(self._dependencies, session, cancel_event)
            resolved = flatten(graph)
            if download_artifacts:
                ArtifactDownloader(self.transport, session).download_all(resolved, cancel_event)
            check_cancelled(cancel_event, "resolution")

        self._resolved = resolved
        self._dependencies = [dependency.copy() for dependency in resolved]
        logger.info(
            "Resolved %d dependencies",
            len(resolved),
            extra=extra_context(
                event="resolve", component="resolver", outcome="success",
                count=len(resolved), duration_ms=timer.duration_ms(),
            ),
        )
        return list(resolved)

    def get_resolved_dependencies(self) -> List[Dependency]:
        """Copies of the resolved dependencies; mutating them leaves the resolver untouched."""
        return [dependency.copy() for dependency in self._resolved or []]

    def get_resolved_notations(self) -> List[str]:
        return [generate(dependency) for dependency in self._resolved or []]

    def get_resolved_paths_by_notation(self) -> Dict[str, str]:
        """Notation to local file, only for entries that have a resolved file."""
        return {
            generate(dependency): dependency.resolved_file
            for dependency in self._resolved or []
            if dependency.resolved_file
        }

    def get_classpath(self) -> Optional[str]:
        """Resolved files joined with os.pathsep, or None before any resolve."""
        if self._resolved is None:
            return None
        return os.pathsep.join(d.resolved_file for d in self._resolved if d.resolved_file)
