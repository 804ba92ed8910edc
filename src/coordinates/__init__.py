"""Artifact coordinates, dependencies and the notation codec."""

from coordinates.models import (
    ArtifactDescriptor,
    Coordinate,
    Dependency,
    DependencyDeclaration,
    Exclusion,
)
from coordinates.notation import generate, parse, to_coordinate

__all__ = [
    "ArtifactDescriptor",
    "Coordinate",
    "Dependency",
    "DependencyDeclaration",
    "Exclusion",
    "generate",
    "parse",
    "to_coordinate",
]
