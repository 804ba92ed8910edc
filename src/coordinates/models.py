"""Data models for artifact coordinates and dependencies."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from constants import Constants, Scope
from errors import MalformedNotationError

WILDCARD = "*"


@dataclass(frozen=True)
class Coordinate:
    """Artifact identity: group, artifact, type, classifier and version."""

    group: str
    artifact: str
    version: str
    type: str = Constants.DEFAULT_TYPE
    classifier: str = ""

    @property
    def identity(self) -> Tuple[str, str, str, str]:
        """Deduplication key; version takes part in conflicts, not identity."""
        return (self.group, self.artifact, self.type, self.classifier)

    @property
    def versionless_key(self) -> str:
        return f"{self.group}:{self.artifact}"

    def with_type(self, type_: str, classifier: str = "") -> "Coordinate":
        return replace(self, type=type_, classifier=classifier)

    def with_version(self, version: str) -> "Coordinate":
        return replace(self, version=version)

    def __str__(self) -> str:
        # Local import keeps models free of codec import cycles.
        from coordinates.notation import generate  # pylint: disable=import-outside-toplevel
        return generate(self)


@dataclass(frozen=True)
class Exclusion:
    """Suppression of a transitive group/artifact; "*" matches any value."""

    group: str = WILDCARD
    artifact: str = WILDCARD

    def matches(self, coordinate: Coordinate) -> bool:
        return (
            (self.group == WILDCARD or self.group == coordinate.group)
            and (self.artifact == WILDCARD or self.artifact == coordinate.artifact)
        )

    @classmethod
    def parse(cls, value: Any) -> "Exclusion":
        """Build from an Exclusion, a (group, artifact) pair or "group:artifact".

        A blank string is rejected rather than read as "*:*".
        """
        if isinstance(value, Exclusion):
            return value
        if isinstance(value, str):
            if not value.strip(" :"):
                raise MalformedNotationError(f"Bad exclusion {value!r}: expected group:artifact")
            group, _, artifact = value.partition(":")
            return cls(group or WILDCARD, artifact or WILDCARD)
        if isinstance(value, Mapping):
            return cls(value.get("group") or WILDCARD, value.get("artifact") or WILDCARD)
        group, artifact = value
        return cls(group or WILDCARD, artifact or WILDCARD)


def canonical_exclusions(values: Iterable[Any]) -> FrozenSet[Exclusion]:
    """Normalize exclusion inputs to a frozenset of Exclusion."""
    return frozenset(Exclusion.parse(v) for v in values)


@dataclass
class Dependency:
    """A declared requirement on a coordinate.

    ``resolved_file`` and ``exclusions`` are only ever rewritten by the
    resolver (attached file, canonicalized inherited exclusions).
    """

    coordinate: Coordinate
    scope: Scope = Scope.COMPILE
    optional: bool = False
    exclusions: FrozenSet[Exclusion] = field(default_factory=frozenset)
    resolved_file: Optional[str] = None

    def __post_init__(self) -> None:
        self.scope = Scope.parse(self.scope)
        self.exclusions = canonical_exclusions(self.exclusions)

    @property
    def identity(self) -> Tuple[str, str, str, str]:
        return self.coordinate.identity

    def is_excluded(self, coordinate: Coordinate) -> bool:
        return any(ex.matches(coordinate) for ex in self.exclusions)

    def copy(self, **changes: Any) -> "Dependency":
        return replace(self, **changes)


@dataclass
class DependencyDeclaration:
    """Plain-data dependency declaration supplied by a project-model reader."""

    group: str
    artifact: str
    version: str
    type: str = Constants.DEFAULT_TYPE
    classifier: str = ""
    scope: str = Scope.COMPILE.value
    optional: bool = False
    exclusions: List[Tuple[str, str]] = field(default_factory=list)
    system_path: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DependencyDeclaration":
        """Accept the camelCase keys of a POM as well as snake_case ones."""
        exclusions = []
        for ex in data.get("exclusions") or []:
            parsed = Exclusion.parse(ex)
            exclusions.append((parsed.group, parsed.artifact))
        return cls(
            group=data.get("group") or data.get("groupId") or "",
            artifact=data.get("artifact") or data.get("artifactId") or "",
            version=data.get("version") or "",
            type=data.get("type") or Constants.DEFAULT_TYPE,
            classifier=data.get("classifier") or "",
            scope=data.get("scope") or Scope.COMPILE.value,
            optional=str(data.get("optional", False)).lower() == "true",
            exclusions=exclusions,
            system_path=data.get("system_path") or data.get("systemPath"),
        )

    def to_dependency(self) -> Dependency:
        coordinate = Coordinate(
            group=self.group,
            artifact=self.artifact,
            version=self.version,
            type=self.type or Constants.DEFAULT_TYPE,
            classifier=self.classifier or "",
        )
        scope = Scope.parse(self.scope)
        return Dependency(
            coordinate=coordinate,
            scope=scope,
            optional=bool(self.optional),
            exclusions=canonical_exclusions(self.exclusions),
            resolved_file=self.system_path if scope is Scope.SYSTEM else None,
        )


@dataclass
class ArtifactDescriptor:
    """What a repository says about a coordinate: its direct dependencies."""

    coordinate: Coordinate
    dependencies: List[DependencyDeclaration] = field(default_factory=list)
    repository_id: Optional[str] = None
