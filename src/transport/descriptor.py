"""Minimal POM reading for repository descriptors.

Only what graph expansion needs: the project's own coordinates, its
``<properties>`` and its ``<dependencies>`` block. Parent inheritance beyond
groupId/version, profiles and dependencyManagement are out of scope; a
dependency left without a version is skipped with a warning.
"""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Mapping, Optional

from coordinates.models import ArtifactDescriptor, Coordinate, DependencyDeclaration
from common.logging_utils import extra_context
from constants import Constants

logger = logging.getLogger(__name__)

_PROPERTY_PATTERN = re.compile(r"\$\{([^}]+)\}")
_MAX_INTERPOLATION_PASSES = 10


class DescriptorParseError(ValueError):
    """POM text could not be parsed."""


def _local(tag: str) -> str:
    """Strip the XML namespace from a tag name."""
    return tag.rsplit("}", 1)[-1]


def _child(elem: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    if elem is None:
        return None
    for item in elem:
        if _local(item.tag) == name:
            return item
    return None


def _children(elem: Optional[ET.Element], name: str) -> List[ET.Element]:
    if elem is None:
        return []
    return [item for item in elem if _local(item.tag) == name]


def _children_all(elem: Optional[ET.Element]) -> List[ET.Element]:
    return [] if elem is None else list(elem)


def _text(elem: Optional[ET.Element], name: str) -> str:
    node = _child(elem, name)
    if node is None or node.text is None:
        return ""
    return node.text.strip()


def interpolate(value: str, properties: Mapping[str, str]) -> str:
    """Replace ``${name}`` references; unknown names are left untouched."""
    result = value
    for _ in range(_MAX_INTERPOLATION_PASSES):
        replaced = _PROPERTY_PATTERN.sub(lambda m: properties.get(m.group(1), m.group(0)), result)
        if replaced == result:
            break
        result = replaced
    return result


def _model_properties(project: ET.Element, coordinate: Coordinate) -> Dict[str, str]:
    parent = _child(project, "parent")
    group = _text(project, "groupId") or _text(parent, "groupId") or coordinate.group
    version = _text(project, "version") or _text(parent, "version") or coordinate.version
    artifact = _text(project, "artifactId") or coordinate.artifact

    props: Dict[str, str] = {}
    for node in _children_all(_child(project, "properties")):
        props[_local(node.tag)] = (node.text or "").strip()
    for prefix in ("project.", "pom.", ""):
        props[f"{prefix}groupId"] = group
        props[f"{prefix}artifactId"] = artifact
        props[f"{prefix}version"] = version
    if parent is not None:
        props["project.parent.groupId"] = _text(parent, "groupId")
        props["project.parent.artifactId"] = _text(parent, "artifactId")
        props["project.parent.version"] = _text(parent, "version")
    return props


def read_descriptor(
    coordinate: Coordinate,
    pom_text: str,
    properties: Optional[Mapping[str, str]] = None,
    repository_id: Optional[str] = None,
) -> ArtifactDescriptor:
    """Build an ArtifactDescriptor from POM text.

    User ``properties`` take precedence over the POM's own ``<properties>``.

    Raises:
        DescriptorParseError: when the text is not XML.
    """
    try:
        project = ET.fromstring(pom_text)
    except ET.ParseError as exc:
        raise DescriptorParseError(f"Invalid POM for {coordinate}: {exc}") from exc

    props = _model_properties(project, coordinate)
    if properties:
        props.update(properties)

    declarations: List[DependencyDeclaration] = []
    for dependency in _children(_child(project, "dependencies"), "dependency"):
        def value(name: str) -> str:
            return interpolate(_text(dependency, name), props)

        group, artifact, version = value("groupId"), value("artifactId"), value("version")
        if not group or not artifact:
            continue
        if not version or "${" in version:
            logger.warning(
                "Skipping %s:%s declared by %s: no usable version",
                group,
                artifact,
                coordinate,
                extra=extra_context(event="descriptor_skip", component="descriptor", outcome="no_version"),
            )
            continue
        exclusions = []
        for exclusion in _children(_child(dependency, "exclusions"), "exclusion"):
            exclusions.append((
                interpolate(_text(exclusion, "groupId"), props) or "*",
                interpolate(_text(exclusion, "artifactId"), props) or "*",
            ))
        declarations.append(DependencyDeclaration(
            group=group,
            artifact=artifact,
            version=version,
            type=value("type") or Constants.DEFAULT_TYPE,
            classifier=value("classifier"),
            scope=value("scope") or "compile",
            optional=value("optional").lower() == "true",
            exclusions=exclusions,
            system_path=value("systemPath") or None,
        ))

    return ArtifactDescriptor(coordinate=coordinate, dependencies=declarations, repository_id=repository_id)


def read_project_file(path: str, properties: Optional[Mapping[str, str]] = None) -> ArtifactDescriptor:
    """Read a project's own POM from disk.

    The descriptor's coordinate comes from the file itself (falling back to
    its parent for groupId and version).

    Raises:
        OSError: when the file cannot be read.
        DescriptorParseError: when the text is not a POM.
    """
    with open(path, "r", encoding="utf-8") as fh:
        text = fh.read()
    try:
        project = ET.fromstring(text)
    except ET.ParseError as exc:
        raise DescriptorParseError(f"Invalid POM {path}: {exc}") from exc
    parent = _child(project, "parent")
    coordinate = Coordinate(
        group=_text(project, "groupId") or _text(parent, "groupId"),
        artifact=_text(project, "artifactId"),
        version=_text(project, "version") or _text(parent, "version"),
        type=_text(project, "packaging") or Constants.DEFAULT_TYPE,
    )
    return read_descriptor(coordinate, text, properties)
