"""Breadth-first reachability from feature entry points over a CallGraphView."""

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple, TypeVar

from tqdm import tqdm

from feature_loc.core.call_graph import CallGraphView
from feature_loc.core.models import FeatureDefinition

logger = logging.getLogger("feature_loc.reachability")

T = TypeVar("T")


def in_scope(symbol: str, scope: Tuple[str, ...]) -> bool:
    """Prefix match against ``scope``; an empty scope accepts everything."""
    return not scope or symbol.startswith(scope)


class ReachabilitySolver:
    """
    Computes the set of symbols reachable from a feature's entry points.

    Entry points are always part of the result, even when the scope would
    exclude them or they are missing from the graph. The scope only filters
    callees discovered during the traversal.
    """

    def __init__(self, graph: CallGraphView):
        self.graph = graph

    def reach(self, entry_points: Iterable[str], scope: Optional[Iterable[str]] = None) -> FrozenSet[str]:
        graph = self.graph
        scope_prefixes = tuple(p for p in (scope or ()) if p)

        result = set(entry_points)
        visited = set()
        queue = deque()
        for symbol in result:
            symbol_id = graph.symbol_id(symbol)
            if symbol_id is not None:
                visited.add(symbol_id)
                queue.append(symbol_id)

        while queue:
            current = queue.popleft()
            for callee_id in graph.callee_ids(current):
                if callee_id in visited:
                    continue
                callee = graph.symbol_at(callee_id)
                if not in_scope(callee, scope_prefixes):
                    continue
                visited.add(callee_id)
                result.add(callee)
                queue.append(callee_id)

        return frozenset(result)

    def reach_feature(self, feature: FeatureDefinition) -> FrozenSet[str]:
        return self.reach(feature.entry_points, feature.package_scope)

    def reach_all(
        self,
        features: Iterable[FeatureDefinition],
        workers: int = 1,
        show_progress: bool = False,
    ) -> Dict[str, FrozenSet[str]]:
        """Solve every feature; returns ``{feature_key: reachable symbols}``."""
        features = list(features)
        results = run_per_feature(
            self.reach_feature, features, workers=workers, show_progress=show_progress, desc="Reachability"
        )
        return {feature.key: reachable for feature, reachable in zip(features, results)}


def run_per_feature(
    task: Callable[[FeatureDefinition], T],
    features: List[FeatureDefinition],
    workers: int = 1,
    show_progress: bool = False,
    desc: str = "Features",
) -> List[T]:
    """
    Run ``task`` once per feature, sequentially or on a thread pool.

    Results are returned in the order of ``features`` regardless of which task
    finishes first. An exception from any task propagates to the caller.
    """
    results: List[Optional[T]] = [None] * len(features)
    progress = tqdm(total=len(features), desc=desc, unit="feature", disable=not show_progress)
    try:
        if workers <= 1 or len(features) <= 1:
            for index, feature in enumerate(features):
                results[index] = task(feature)
                progress.update(1)
        else:
            logger.info(f"Processing {len(features)} features on {workers} workers")
            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_to_index = {
                    executor.submit(task, feature): index
                    for index, feature in enumerate(features)
                }
                for future in as_completed(future_to_index):
                    results[future_to_index[future]] = future.result()
                    progress.update(1)
    finally:
        progress.close()
    return results
