"""Pluggable repository transports."""

from transport.base import ArtifactNotFound, Transport, TransportError
from transport.router import TransportRouter

__all__ = ["ArtifactNotFound", "Transport", "TransportError", "TransportRouter"]
