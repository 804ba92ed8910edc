"""Transitive dependency resolution."""

from resolution.resolver import DependencyResolver
from resolution.session import ResolutionSession

__all__ = ["DependencyResolver", "ResolutionSession"]
