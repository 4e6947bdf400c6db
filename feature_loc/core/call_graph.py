"""
Read-only view over a caller -> callees relation.

Symbols are interned to dense integer ids at construction so traversal works
on ints and tuples instead of string-keyed maps. The string symbol stays the
external identity; the ids are only valid for one view.
"""

import logging
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from feature_loc.core.models import declaring_type

logger = logging.getLogger("feature_loc.call_graph")


class CallGraphView:
    def __init__(
        self,
        edges: Iterable[Tuple[str, str]],
        noise_prefixes: Optional[Sequence[str]] = None,
    ):
        """
        Build the view from ``(caller, callee)`` pairs.

        Args:
            edges: Caller/callee symbol pairs. Duplicates are collapsed.
            noise_prefixes: Declaring-type prefixes whose edges are dropped
                (e.g. runtime library namespaces). Applied to both endpoints.
                Noise symbols never enter the view; the other endpoint of a
                dropped edge does, with no edge attached.
        """
        self.noise_prefixes: Tuple[str, ...] = tuple(p for p in (noise_prefixes or ()) if p)
        self._ids: Dict[str, int] = {}
        self._symbols: List[str] = []

        adjacency: Dict[int, set] = {}
        dropped = 0
        for caller, callee in edges:
            caller_noise = self.is_noise(caller)
            callee_noise = self.is_noise(callee)
            # The non-noise end of a dropped edge is still a known symbol
            caller_id = None if caller_noise else self._intern(caller)
            callee_id = None if callee_noise else self._intern(callee)
            if caller_id is None or callee_id is None:
                dropped += 1
                continue
            adjacency.setdefault(caller_id, set()).add(callee_id)

        # Sorted tuples keep edges() and traversal order independent of input order
        self._adjacency: Tuple[Tuple[int, ...], ...] = tuple(
            tuple(sorted(adjacency.get(i, ()), key=self._symbols.__getitem__))
            for i in range(len(self._symbols))
        )
        self._edge_count = sum(len(callees) for callees in self._adjacency)
        if dropped:
            logger.debug(f"Dropped {dropped} edges touching noise namespaces")
        logger.info(f"Call graph: {len(self._symbols)} symbols, {self._edge_count} edges")

    @classmethod
    def from_mapping(
        cls,
        relation: Mapping[str, Iterable[str]],
        noise_prefixes: Optional[Sequence[str]] = None,
    ) -> "CallGraphView":
        """Build from a ``{caller: [callees]}`` mapping."""
        return cls(
            ((caller, callee) for caller, callees in relation.items() for callee in callees),
            noise_prefixes=noise_prefixes,
        )

    def _intern(self, symbol: str) -> int:
        symbol_id = self._ids.get(symbol)
        if symbol_id is None:
            symbol_id = len(self._symbols)
            self._ids[symbol] = symbol_id
            self._symbols.append(symbol)
        return symbol_id

    def is_noise(self, symbol: str) -> bool:
        return bool(self.noise_prefixes) and declaring_type(symbol).startswith(self.noise_prefixes)

    def callees_of(self, symbol: str) -> FrozenSet[str]:
        """Direct callees of ``symbol``; empty when the symbol is not in the graph."""
        symbol_id = self._ids.get(symbol)
        if symbol_id is None:
            return frozenset()
        return frozenset(self._symbols[i] for i in self._adjacency[symbol_id])

    def edge_count(self) -> int:
        return self._edge_count

    def edges(self) -> Iterator[Tuple[str, str]]:
        """All edges, ordered by caller then callee symbol."""
        for caller_id in sorted(range(len(self._symbols)), key=self._symbols.__getitem__):
            caller = self._symbols[caller_id]
            for callee_id in self._adjacency[caller_id]:
                yield caller, self._symbols[callee_id]

    def symbols(self) -> FrozenSet[str]:
        return frozenset(self._symbols)

    # Integer id API used by the reachability hot path

    def symbol_id(self, symbol: str) -> Optional[int]:
        return self._ids.get(symbol)

    def symbol_at(self, symbol_id: int) -> str:
        return self._symbols[symbol_id]

    def callee_ids(self, symbol_id: int) -> Tuple[int, ...]:
        return self._adjacency[symbol_id]

    def id_edges(self) -> Iterator[Tuple[int, int]]:
        for caller_id, callees in enumerate(self._adjacency):
            for callee_id in callees:
                yield caller_id, callee_id

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._ids

    def __len__(self) -> int:
        return len(self._symbols)
