"""Notation codec: group:artifact[:type[:classifier]]:version."""
from __future__ import annotations

from typing import Union

from constants import Constants
from errors import MalformedNotationError

from .models import Coordinate, Dependency


def _check_field(value: str, name: str, notation: str, required: bool = True) -> str:
    if required and not value:
        raise MalformedNotationError(
            f"Bad artifact notation '{notation}': {name} is empty, "
            "expected group:artifact[:type[:classifier]]:version",
            notation=notation,
        )
    if any(ch.isspace() for ch in value):
        raise MalformedNotationError(
            f"Bad artifact notation '{notation}': {name} contains whitespace",
            notation=notation,
        )
    return value


def parse(notation: str) -> Coordinate:
    """Parse a notation string into a Coordinate.

    Three fields are group:artifact:version, four add the type and five add
    type and classifier. An empty type segment falls back to "jar".

    Raises:
        MalformedNotationError: on a wrong field count or an empty required field.
    """
    if not isinstance(notation, str):
        raise MalformedNotationError(f"Bad artifact notation {notation!r}: not a string")
    text = notation.strip()
    fields = text.split(":")
    if len(fields) < 3 or len(fields) > 5:
        raise MalformedNotationError(
            f"Bad artifact notation '{notation}', expected "
            "group:artifact[:type[:classifier]]:version",
            notation=notation,
        )

    group = _check_field(fields[0], "group", notation)
    artifact = _check_field(fields[1], "artifact", notation)
    version = _check_field(fields[-1], "version", notation)
    type_ = Constants.DEFAULT_TYPE
    classifier = ""
    if len(fields) >= 4:
        type_ = _check_field(fields[2], "type", notation, required=False) or Constants.DEFAULT_TYPE
    if len(fields) == 5:
        classifier = _check_field(fields[3], "classifier", notation)

    return Coordinate(group=group, artifact=artifact, version=version, type=type_, classifier=classifier)


def generate(target: Union[Coordinate, Dependency]) -> str:
    """Inverse of ``parse``; the type is omitted only for a plain jar."""
    coordinate = target.coordinate if isinstance(target, Dependency) else target
    parts = [coordinate.group, coordinate.artifact]
    if coordinate.classifier:
        parts.extend([coordinate.type, coordinate.classifier])
    elif coordinate.type != Constants.DEFAULT_TYPE:
        parts.append(coordinate.type)
    parts.append(coordinate.version)
    return ":".join(parts)


def to_coordinate(value: Union[str, Coordinate, Dependency]) -> Coordinate:
    """Coerce a notation, Coordinate or Dependency into a Coordinate."""
    if isinstance(value, Coordinate):
        return value
    if isinstance(value, Dependency):
        return value.coordinate
    return parse(value)
