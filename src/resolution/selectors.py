"""Dependency selectors applied during graph expansion.

A selector decides whether a discovered dependency joins the graph
(``select``) and whether its own dependencies are looked up (``expand``).
Selectors compose with ``AndSelector``: every member must agree.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Tuple

from constants import Scope
from coordinates.models import Dependency, Exclusion


@dataclass(frozen=True)
class SelectionContext:
    """Where a dependency was found: depth 1 is a declared root."""

    depth: int
    exclusions: FrozenSet[Exclusion] = field(default_factory=frozenset)

    @property
    def transitive(self) -> bool:
        return self.depth > 1


class DependencySelector:
    """Accepts everything; subclasses narrow it down."""

    def select(self, dependency: Dependency, context: SelectionContext) -> bool:  # pylint: disable=unused-argument
        return True

    def expand(self, dependency: Dependency) -> bool:  # pylint: disable=unused-argument
        return True


class AndSelector(DependencySelector):
    """Conjunction of selectors."""

    def __init__(self, *selectors: DependencySelector) -> None:
        flat = []
        for selector in selectors:
            if isinstance(selector, AndSelector):
                flat.extend(selector.selectors)
            else:
                flat.append(selector)
        self.selectors: Tuple[DependencySelector, ...] = tuple(flat)

    def select(self, dependency: Dependency, context: SelectionContext) -> bool:
        return all(s.select(dependency, context) for s in self.selectors)

    def expand(self, dependency: Dependency) -> bool:
        return all(s.expand(dependency) for s in self.selectors)

    def __repr__(self) -> str:
        return f"AndSelector({', '.join(type(s).__name__ for s in self.selectors)})"


class ScopeSelector(DependencySelector):
    """Drops transitive dependencies in the given scopes (test, provided)."""

    def __init__(self, excluded: Iterable[Scope] = (Scope.TEST, Scope.PROVIDED)) -> None:
        self.excluded = frozenset(excluded)

    def select(self, dependency: Dependency, context: SelectionContext) -> bool:
        return not (context.transitive and dependency.scope in self.excluded)


class OptionalSelector(DependencySelector):
    """Drops transitive optional dependencies."""

    def select(self, dependency: Dependency, context: SelectionContext) -> bool:
        return not (context.transitive and dependency.optional)


class ExclusionSelector(DependencySelector):
    """Drops dependencies matching an exclusion inherited from an ancestor."""

    def select(self, dependency: Dependency, context: SelectionContext) -> bool:
        return not any(ex.matches(dependency.coordinate) for ex in context.exclusions)


class ValidSystemScopeSelector(DependencySelector):
    """System-scoped dependencies are file-path based: keep them as leaves.

    They are never expanded and never requested from a repository.
    """

    def expand(self, dependency: Dependency) -> bool:
        return dependency.scope is not Scope.SYSTEM


def default_selector() -> DependencySelector:
    """Maven's default selection composed with the system-scope rule."""
    return AndSelector(
        ScopeSelector(),
        OptionalSelector(),
        ExclusionSelector(),
        ValidSystemScopeSelector(),
    )


def derive_scope(parent: Scope, child: Scope) -> Scope:
    """Scope a transitive dependency takes under its parent."""
    if child is Scope.SYSTEM:
        return child
    if parent in (Scope.PROVIDED, Scope.TEST):
        return parent
    if parent is Scope.RUNTIME and child is Scope.COMPILE:
        return Scope.RUNTIME
    return child
