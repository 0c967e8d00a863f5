"""
Utility functions for pyflowgraph.

This module provides shared utility functions used across the flowgraph package,
including geometric calculations and common graph algorithms. Every traversal
here is iterative so that continental-size networks do not hit the recursion
limit.
"""

import math
import numpy as np
from typing import Dict, Hashable, List, Optional, Sequence, Tuple
from collections import defaultdict, deque
import logging

from .exceptions import CycleError

logger = logging.getLogger(__name__)


def deflection_angle(aDirection_in: np.ndarray, aDirection_out: np.ndarray) -> float:
    """
    Angle between an incoming and an outgoing direction.

    Args:
        aDirection_in: Unit direction of the flow arriving at the nexus
        aDirection_out: Unit direction of the flow leaving the nexus

    Returns:
        Angle in [0, pi]; 0 is a straight continuation, pi a full reversal
    """
    dCosine = float(np.clip(np.dot(aDirection_in, aDirection_out), -1.0, 1.0))
    return math.acos(dCosine)


def normalized_deflection(aDirection_in: np.ndarray, aDirection_out: np.ndarray) -> float:
    """Deflection angle expressed as a fraction of pi."""
    return deflection_angle(aDirection_in, aDirection_out) / math.pi


def angle_between_segments(c0: Sequence[float], c1: Sequence[float],
                           c2: Sequence[float], c3: Sequence[float]) -> Optional[float]:
    """
    Unsigned angle between segment c0-c1 and segment c2-c3, in [0, pi].

    Returns None if either segment is degenerate.
    """
    v1 = np.asarray(c1[:2], dtype=float) - np.asarray(c0[:2], dtype=float)
    v2 = np.asarray(c3[:2], dtype=float) - np.asarray(c2[:2], dtype=float)
    n1 = np.hypot(v1[0], v1[1])
    n2 = np.hypot(v2[0], v2[1])
    if n1 == 0.0 or n2 == 0.0:
        return None
    return deflection_angle(v1 / n1, v2 / n2)


def topological_sort(adjacency_dict: Dict[Hashable, List[Hashable]],
                     nodes: Optional[Sequence[Hashable]] = None) -> List[Hashable]:
    """
    Perform topological sort on a directed acyclic graph.

    Nodes with equal precedence are emitted in the order they appear in
    ``nodes`` (or in the adjacency dict), so the result is deterministic.

    Args:
        adjacency_dict: Dictionary mapping node_id -> list of downstream node_ids
        nodes: Optional explicit node order; must contain every node

    Returns:
        Topologically sorted list of node IDs

    Raises:
        CycleError: If the graph contains cycles
    """
    if nodes is None:
        seen = dict.fromkeys(adjacency_dict.keys())
        for node in adjacency_dict:
            for neighbor in adjacency_dict[node]:
                seen.setdefault(neighbor)
        nodes = list(seen)

    # Calculate in-degrees
    in_degree = defaultdict(int)
    for node in nodes:
        for neighbor in adjacency_dict.get(node, []):
            in_degree[neighbor] += 1

    # Initialize queue with nodes having no incoming edges
    queue = deque([node for node in nodes if in_degree[node] == 0])
    result = []

    while queue:
        node = queue.popleft()
        result.append(node)

        for neighbor in adjacency_dict.get(node, []):
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if len(result) != len(nodes):
        remaining = [node for node in nodes if in_degree[node] > 0]
        raise CycleError(f"Graph contains cycles - topological sort not possible "
                         f"({len(remaining)} elements unresolved)",
                         remaining[0] if remaining else None)

    return result


def find_weak_components(adjacency_dict: Dict[Hashable, List[Hashable]],
                         nodes: Sequence[Hashable]) -> List[List[Hashable]]:
    """
    Find weakly connected components with an iterative breadth-first search.

    Args:
        adjacency_dict: Dictionary mapping node_id -> list of connected node_ids
        nodes: All node ids, in the order components should be reported

    Returns:
        List of components, each a list of node IDs in discovery order
    """
    undirected: Dict[Hashable, List[Hashable]] = defaultdict(list)
    for node, neighbors in adjacency_dict.items():
        for neighbor in neighbors:
            undirected[node].append(neighbor)
            undirected[neighbor].append(node)

    visited = set()
    components = []
    for start in nodes:
        if start in visited:
            continue
        visited.add(start)
        component = []
        queue = deque([start])
        while queue:
            current = queue.popleft()
            component.append(current)
            for neighbor in undirected[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        components.append(component)

    return components


def round_coordinate(coordinate: Sequence[float], iPrecision: int) -> Tuple[float, float]:
    """Round the planar part of a coordinate to build a stable nexus key."""
    return (round(float(coordinate[0]), iPrecision), round(float(coordinate[1]), iPrecision))
