"""Flattening of a collected graph into an ordered dependency list."""
from __future__ import annotations

from typing import Dict, List, Tuple

from coordinates.models import Dependency

from .collector import DependencyGraph, Identity


def preorder(graph: DependencyGraph) -> List[int]:
    """Node indices in pre-order: parent first, children in declared order."""
    order: List[int] = []
    stack = list(reversed(graph.roots))
    while stack:
        index = stack.pop()
        order.append(index)
        stack.extend(reversed(graph.nodes[index].children))
    return order


def flatten(graph: DependencyGraph) -> List[Dependency]:
    """Nearest-wins flattening.

    One entry per identity survives: the shallowest one, and among equal
    depths the first in pre-order. Survivors keep their pre-order position.
    """
    order = preorder(graph)
    best: Dict[Identity, Tuple[int, int]] = {}
    for position, index in enumerate(order):
        node = graph.nodes[index]
        identity = node.dependency.identity
        current = best.get(identity)
        if current is None or node.depth < current[0]:
            best[identity] = (node.depth, position)

    survivors = sorted(position for _, position in best.values())
    return [graph.nodes[order[position]].dependency for position in survivors]
