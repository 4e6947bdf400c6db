"""Joins reachable symbol sets with LOC maps into per-feature attribution records."""

import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple

from feature_loc.core.call_graph import CallGraphView
from feature_loc.core.errors import SymbolResolutionWarning
from feature_loc.core.models import (
    FeatureAttribution,
    FeatureAttributionBuilder,
    FeatureDefinition,
    is_method_symbol,
    split_symbol,
)

logger = logging.getLogger("feature_loc.loc_attributor")


def reachable_classes(reachable: Iterable[str]) -> Set[str]:
    """Declaring types of reachable methods plus reachable class symbols."""
    return {split_symbol(symbol)[0] for symbol in reachable}


def count_internal_edges(reachable: FrozenSet[str], graph: CallGraphView) -> int:
    """Number of graph edges whose caller and callee are both in ``reachable``."""
    ids = {graph.symbol_id(s) for s in reachable}
    ids.discard(None)
    return sum(1 for caller_id in ids for callee_id in graph.callee_ids(caller_id) if callee_id in ids)


class LocAttributor:
    """
    Sums function and class line counts over a feature's reachable set.

    LOC maps may be partial: a symbol without an entry contributes zero and is
    reported as a SymbolResolutionWarning. An empty map is treated as "not
    supplied" and produces no warnings.
    """

    def attribute(
        self,
        feature: FeatureDefinition,
        reachable: FrozenSet[str],
        function_loc: Mapping[str, int],
        class_loc: Mapping[str, int],
        graph: CallGraphView,
    ) -> FeatureAttribution:
        record, _ = self.attribute_with_warnings(feature, reachable, function_loc, class_loc, graph)
        return record

    def attribute_with_warnings(
        self,
        feature: FeatureDefinition,
        reachable: FrozenSet[str],
        function_loc: Mapping[str, int],
        class_loc: Mapping[str, int],
        graph: CallGraphView,
    ) -> Tuple[FeatureAttribution, List[SymbolResolutionWarning]]:
        builder = FeatureAttributionBuilder(feature)
        warnings: List[SymbolResolutionWarning] = []

        builder.reachable_functions = {s for s in reachable if is_method_symbol(s)}
        builder.reachable_classes = reachable_classes(reachable)

        for symbol in sorted(builder.reachable_functions):
            lines = function_loc.get(symbol)
            if lines is None:
                if function_loc:
                    warnings.append(SymbolResolutionWarning(symbol, "no function LOC entry", feature.key))
                continue
            builder.add_function_loc(lines)

        for type_name in sorted(builder.reachable_classes):
            lines = class_loc.get(type_name)
            if lines is None:
                if class_loc:
                    warnings.append(SymbolResolutionWarning(type_name, "no class LOC entry", feature.key))
                continue
            builder.add_class_loc(lines)

        builder.internal_edge_count = count_internal_edges(reachable, graph)

        if warnings:
            logger.warning(f"Feature '{feature.key}': {len(warnings)} reachable symbols have no LOC entry")
        return builder.build(), warnings


def rollup_class_loc(own_loc: Mapping[str, int], containment: Mapping[str, Iterable[str]]) -> Dict[str, int]:
    """
    Class LOC including nested classes: own LOC plus the rolled-up LOC of every child.

    Walks the containment tree with an explicit stack. A containment cycle is
    broken at the edge that closes it, and that edge is logged and ignored.
    """
    children: Dict[str, List[str]] = {outer: list(dict.fromkeys(inner)) for outer, inner in containment.items()}
    classes = set(own_loc) | set(children)
    for inner in children.values():
        classes.update(inner)

    totals: Dict[str, int] = {}
    in_progress: Set[str] = set()

    for root in sorted(classes):
        if root in totals:
            continue
        stack: List[Tuple[str, bool]] = [(root, False)]
        while stack:
            name, expanded = stack.pop()
            if expanded:
                in_progress.discard(name)
                totals[name] = own_loc.get(name, 0) + sum(
                    totals.get(child, 0) for child in _acyclic_children(name, children, totals)
                )
                continue
            if name in totals or name in in_progress:
                continue
            in_progress.add(name)
            stack.append((name, True))
            for child in children.get(name, ()):
                if child in in_progress:
                    logger.warning(f"Class containment cycle at {name} -> {child}; ignoring that edge")
                    _mark_cycle(children, name, child)
                elif child not in totals:
                    stack.append((child, False))

    return totals


def _mark_cycle(children: Dict[str, List[str]], outer: str, inner: str) -> None:
    children[outer] = [c for c in children[outer] if c != inner]


def _acyclic_children(name: str, children: Dict[str, List[str]], totals: Dict[str, int]) -> Iterable[str]:
    return [c for c in children.get(name, ()) if c in totals]
