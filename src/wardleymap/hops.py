"""Hop distance from anchors, and the visual emphasis derived from it.

Distances propagate only along links in their authored direction
(``start -> end``). Every anchor seeds the search at distance 0, so the
result does not depend on the order anchors or links are listed in.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple

from .model import Component, Link

logger = logging.getLogger(__name__)

BASE_OPACITY = 0.8
MIN_OPACITY = 0.3

# Index = hop distance; the last colour covers everything further away.
HOP_COLORS = (
    "#7C3AED",  # anchor
    "#2563EB",
    "#0891B2",
    "#475569",
    "#6B7280",
    "#9CA3AF",
)


def calculate_hop_distances(
    links: Iterable[Link], components: Iterable[Component]
) -> Dict[str, int]:
    """Return the minimum hop count from any anchor, keyed by component name.

    Components with no path from an anchor are absent from the result.
    """
    components = list(components)
    adjacency: Dict[str, List[str]] = {component.name: [] for component in components}
    seen_edges: Set[Tuple[str, str]] = set()
    for link in links:
        neighbours = adjacency.get(link.start)
        if neighbours is None or link.end not in adjacency:
            logger.debug("link %s -> %s: unknown endpoint, ignored for hop distance", link.start, link.end)
            continue
        if (link.start, link.end) in seen_edges:
            continue
        seen_edges.add((link.start, link.end))
        neighbours.append(link.end)

    distances: Dict[str, int] = {}
    queue: Deque[str] = deque()
    for component in components:
        if component.type == "anchor" and component.name not in distances:
            distances[component.name] = 0
            queue.append(component.name)

    while queue:
        current = queue.popleft()
        next_distance = distances[current] + 1
        for neighbour in adjacency.get(current, ()):
            if neighbour in distances:
                continue
            distances[neighbour] = next_distance
            queue.append(neighbour)

    return distances


def opacity_for_distance(
    distance: Optional[int],
    base_opacity: float = BASE_OPACITY,
    min_opacity: float = MIN_OPACITY,
) -> float:
    if distance is None:
        return 1.0
    return max(min_opacity, base_opacity ** distance)


def color_for_distance(distance: Optional[int]) -> Optional[str]:
    if distance is None:
        return None
    return HOP_COLORS[min(distance, len(HOP_COLORS) - 1)]


def link_distance(start: Optional[int], end: Optional[int]) -> Optional[int]:
    """Distance used to style a link: the endpoint closer to an anchor wins."""
    if start is not None and end is not None:
        return min(start, end)
    return start if start is not None else end
