"""Dependency graph collection.

The graph lives in an arena: nodes are addressed by their index in
``DependencyGraph.nodes`` and expansion runs off an explicit work queue, so
deep graphs never touch the interpreter's recursion limit.

Expansion is breadth-first. Within one depth the queue order matches
pre-order, so the first node registered for an identity is also the nearest
one and, among equal depths, the first declared. Later occurrences lose the
conflict and are dropped together with their subtrees; cycles end there too.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, List, Optional, Sequence, Tuple

from common.http_client import with_retries
from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Constants, Scope
from coordinates.models import ArtifactDescriptor, Coordinate, Dependency, DependencyDeclaration, Exclusion
from errors import DependencyCollectionError, ResolutionCancelledError
from transport.base import ArtifactNotFound, Transport, TransportError

from .selectors import SelectionContext, derive_scope
from .session import ResolutionSession

logger = logging.getLogger(__name__)

Identity = Tuple[str, str, str, str]


@dataclass
class GraphNode:
    """One dependency in the collected graph."""

    dependency: Dependency
    depth: int
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)

    @property
    def exclusions(self) -> FrozenSet[Exclusion]:
        """Exclusions in force for this node's children."""
        return self.dependency.exclusions


@dataclass
class DependencyGraph:
    """Arena of nodes plus the indices of the root dependencies.

    ``system_files`` maps every identity declared with system scope to its
    ``systemPath``. Such a declaration wins the identity: the surviving node
    is never expanded and takes system scope and that path.
    """

    nodes: List[GraphNode] = field(default_factory=list)
    roots: List[int] = field(default_factory=list)
    system_files: Dict[Identity, Optional[str]] = field(default_factory=dict)

    def add(self, dependency: Dependency, depth: int, parent: Optional[int] = None) -> int:
        index = len(self.nodes)
        self.nodes.append(GraphNode(dependency=dependency, depth=depth, parent=parent))
        if parent is None:
            self.roots.append(index)
        else:
            self.nodes[parent].children.append(index)
        return index

    def __len__(self) -> int:
        return len(self.nodes)

    def note_system(self, dependency: Dependency) -> None:
        if dependency.scope is Scope.SYSTEM:
            self.system_files.setdefault(dependency.identity, dependency.resolved_file)


def check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ResolutionCancelledError(f"Resolution cancelled during {stage}")


class DependencyCollector:
    """Expands root dependencies into a conflict-free DependencyGraph."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self._descriptors: Dict[Coordinate, ArtifactDescriptor] = {}

    def collect(
        self,
        roots: Sequence[Dependency],
        session: ResolutionSession,
        cancel_event: Optional[threading.Event] = None,
    ) -> DependencyGraph:
        """Build the graph for ``roots``.

        Raises:
            DependencyCollectionError: a selected node has no descriptor in any repository,
                or its descriptor declares a dependency that does not parse.
            ResolutionCancelledError: ``cancel_event`` was set between expansion steps.
        """
        self._descriptors = {}
        graph = DependencyGraph()
        winners: Dict[Identity, int] = {}
        queue: Deque[int] = deque()
        selector = session.selector

        with Timer() as timer:
            for declared in roots:
                dependency = declared.copy()
                if not selector.select(dependency, SelectionContext(depth=1)):
                    continue
                graph.note_system(dependency)
                if dependency.identity in winners:
                    self._log_conflict(dependency, graph.nodes[winners[dependency.identity]].dependency)
                    continue
                index = graph.add(dependency, depth=1)
                winners[dependency.identity] = index
                queue.append(index)

            while queue:
                check_cancelled(cancel_event, "dependency collection")
                index = queue.popleft()
                node = graph.nodes[index]
                parent_dep = node.dependency
                if not selector.expand(parent_dep):
                    continue
                if parent_dep.identity in graph.system_files:
                    if is_debug_enabled(logger):
                        logger.debug("Not expanding %s: declared with system scope", parent_dep.coordinate)
                    continue

                descriptor = self._descriptor(parent_dep, session)
                for declaration in descriptor.dependencies:
                    child = self._child(declaration, parent_dep)
                    context = SelectionContext(depth=node.depth + 1, exclusions=node.exclusions)
                    # Selection sees the declared scope; the derived one is stored.
                    if not selector.select(child, context):
                        if is_debug_enabled(logger):
                            logger.debug("Filtered %s below %s", child.coordinate, parent_dep.coordinate)
                        continue
                    graph.note_system(child)
                    child.scope = derive_scope(parent_dep.scope, child.scope)
                    if child.identity in winners:
                        self._log_conflict(child, graph.nodes[winners[child.identity]].dependency)
                        continue
                    child.exclusions = child.exclusions | node.exclusions
                    child_index = graph.add(child, depth=node.depth + 1, parent=index)
                    winners[child.identity] = child_index
                    queue.append(child_index)

            for node in graph.nodes:
                identity = node.dependency.identity
                if identity in graph.system_files and node.dependency.scope is not Scope.SYSTEM:
                    node.dependency.scope = Scope.SYSTEM
                    node.dependency.resolved_file = graph.system_files[identity]

        logger.info(
            "Collected %d dependencies from %d roots",
            len(graph),
            len(graph.roots),
            extra=extra_context(
                event="collect", component="collector", count=len(graph), duration_ms=timer.duration_ms()
            ),
        )
        return graph

    @staticmethod
    def _child(declaration: DependencyDeclaration, parent: Dependency) -> Dependency:
        try:
            return declaration.to_dependency()
        except ValueError as exc:
            notation = f"{declaration.group}:{declaration.artifact}:{declaration.version}"
            message = f"Invalid dependency {notation} declared by {parent.coordinate}: {exc}"
            logger.error(message)
            raise DependencyCollectionError(message, notation=notation) from exc

    def _log_conflict(self, loser: Dependency, winner: Dependency) -> None:
        if is_debug_enabled(logger) and loser.coordinate.version != winner.coordinate.version:
            logger.debug(
                "Conflict on %s: keeping %s, omitting %s",
                loser.coordinate.versionless_key,
                winner.coordinate.version,
                loser.coordinate.version,
            )

    def _descriptor(self, dependency: Dependency, session: ResolutionSession) -> ArtifactDescriptor:
        """First descriptor found across repositories, in priority order."""
        coordinate = dependency.coordinate
        cached = self._descriptors.get(coordinate)
        if cached is not None:
            return cached

        last_error: Optional[TransportError] = None
        for repository in session.repositories:
            try:
                descriptor = with_retries(
                    lambda repo=repository: self.transport.get_descriptor(
                        repo, coordinate, session.user_properties
                    ),
                    is_transient=lambda exc: isinstance(exc, TransportError) and exc.transient,
                    attempts=Constants.HTTP_RETRY_MAX,
                    base_delay=Constants.HTTP_RETRY_BASE_DELAY_SEC,
                    context=str(coordinate),
                )
            except ArtifactNotFound:
                continue
            except TransportError as exc:
                logger.warning("Descriptor lookup of %s in %s failed: %s", coordinate, repository.id, exc)
                last_error = exc
                continue
            if is_debug_enabled(logger):
                logger.debug(
                    "Descriptor resolved",
                    extra=extra_context(
                        event="descriptor", component="collector", notation=str(coordinate),
                        repository=repository.id, count=len(descriptor.dependencies),
                    ),
                )
            self._descriptors[coordinate] = descriptor
            return descriptor

        searched = ", ".join(repo.id for repo in session.repositories)
        message = f"Failed to read artifact descriptor for {coordinate} (searched: {searched})"
        if last_error is not None:
            message += f": {last_error}"
        logger.error(message)
        raise DependencyCollectionError(message, notation=str(coordinate))
