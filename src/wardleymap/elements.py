"""Resolve raw component entries into the set that is actually drawn."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Tuple

from .hops import calculate_hop_distances
from .model import Component, MapModel, MapModelError

logger = logging.getLogger(__name__)


def target_maturity(component: Component) -> float:
    """Maturity an evolved component is drawn at."""
    if component.evolve_maturity is not None:
        return component.evolve_maturity
    return component.maturity


class MapElements:
    """Name-keyed view of a map's components for one render pass.

    Entries sharing a name collapse to one logical component. The
    pre-evolution entry is authoritative for links and labels; an entry
    flagged ``evolved`` under the same name (or a component carrying an
    ``evolve_maturity``) becomes that component's evolved counterpart.
    """

    def __init__(self, model: MapModel, distances: Optional[Mapping[str, int]] = None) -> None:
        for component in model.components + model.anchors:
            if not component.name:
                raise MapModelError(f'component id="{component.id}" has no name')

        merged, evolved_targets = self._merge(model.components)
        anchors = self._dedupe_anchors(model.anchors, merged)

        if distances is None:
            distances = calculate_hop_distances(model.links, merged + anchors)

        self._merged = [_with_distance(c, distances) for c in merged]
        self._anchors = [_with_distance(c, distances) for c in anchors]
        targets = [_with_distance(c, distances) for c in evolved_targets]

        self._index: Dict[str, Component] = {}
        for component in self._merged + self._anchors:
            self._index.setdefault(component.name, component)

        target_names = {target.name for target in targets}
        self._evolving = [c for c in self._merged if not c.evolved and c.name in target_names]
        self._evolved = [c for c in self._merged if c.evolved] + targets
        self._targets = targets

    @staticmethod
    def _merge(components: Tuple[Component, ...]) -> Tuple[List[Component], List[Component]]:
        groups: Dict[str, List[Component]] = {}
        for component in components:
            groups.setdefault(component.name, []).append(component)

        merged: List[Component] = []
        targets: List[Component] = []
        for name, entries in groups.items():
            base = next((c for c in entries if not c.evolved), entries[0])
            merged.append(base)
            rest = [c for c in entries if c is not base]

            target: Optional[Component] = None
            if not base.evolved:
                target = next((c for c in rest if c.evolved), None)
                if target is None and base.evolve_maturity is not None:
                    target = replace(
                        base,
                        evolved=True,
                        maturity=base.evolve_maturity,
                    )
            if target is not None:
                targets.append(target)

            for dropped in rest:
                if dropped is not target:
                    logger.debug('duplicate component "%s" (id=%s) dropped', name, dropped.id)
        return merged, targets

    @staticmethod
    def _dedupe_anchors(
        anchors: Tuple[Component, ...], merged: List[Component]
    ) -> List[Component]:
        result: List[Component] = []
        seen = set()
        for anchor in list(anchors) + [c for c in merged if c.type == "anchor"]:
            if anchor.name in seen:
                continue
            seen.add(anchor.name)
            result.append(anchor)
        return result

    def get_merged_components(self) -> List[Component]:
        return list(self._merged)

    def get_anchors(self) -> List[Component]:
        return list(self._anchors)

    def get_evolving_components(self) -> List[Component]:
        return list(self._evolving)

    def get_evolved_components(self) -> List[Component]:
        return list(self._evolved)

    def get_evolution_targets(self) -> List[Component]:
        """Evolved counterparts of evolving components, in map order."""
        return list(self._targets)

    def find_component(self, name: str) -> Optional[Component]:
        return self._index.get(name)

    def evolution_pairs(self) -> List[Tuple[Component, Component]]:
        """(evolving, target) pairs; every evolving component has exactly one target."""
        by_name = {target.name: target for target in self._targets}
        return [(evolving, by_name[evolving.name]) for evolving in self._evolving]


def _with_distance(component: Component, distances: Mapping[str, int]) -> Component:
    return replace(component, hop_distance=distances.get(component.name))
