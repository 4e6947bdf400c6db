"""
Readers for the snapshot files produced by the external analysers.

- call graph: CSV lines ``caller,callee`` (header optional) or a YAML/JSON
  mapping ``{caller: [callees]}``
- LOC maps: CSV ``Symbol,LineCount`` (header optional)
- symbol universe: YAML/JSON ``classes: {Type: {markers, methods, contains}}``

These only parse files. OSError from opening them propagates unchanged;
malformed content raises SnapshotError with the offending line.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from feature_loc.core.call_graph import CallGraphView
from feature_loc.core.config import format_validation_error
from feature_loc.core.errors import SnapshotError
from feature_loc.core.models import SymbolUniverse

logger = logging.getLogger("feature_loc.snapshots")

_STRUCTURED_SUFFIXES = (".yaml", ".yml", ".json")


def _read_structured(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    try:
        if path.suffix.lower() == ".json":
            return json.loads(text) if text.strip() else None
        return yaml.safe_load(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Invalid JSON: {e.msg}", file=str(path), line=e.lineno) from e
    except yaml.YAMLError as e:
        raise SnapshotError(f"Invalid YAML: {e}", file=str(path)) from e


def _csv_rows(path: Path) -> Iterable[Tuple[int, List[str]]]:
    with open(path, "r", encoding="utf-8", newline="") as f:
        for line_number, row in enumerate(csv.reader(f), start=1):
            row = [cell.strip() for cell in row]
            if not any(row):
                continue
            yield line_number, row


def read_call_graph_edges(path: str) -> List[Tuple[str, str]]:
    path_obj = Path(path)
    if path_obj.suffix.lower() in _STRUCTURED_SUFFIXES:
        return _edges_from_mapping(_read_structured(path_obj), path_obj)

    edges = []
    for line_number, row in _csv_rows(path_obj):
        if len(row) != 2 or not row[0] or not row[1]:
            raise SnapshotError(f"expected 'caller,callee', got {len(row)} fields", file=str(path_obj), line=line_number)
        if not edges and [c.lower() for c in row] == ["caller", "callee"]:
            continue
        edges.append((row[0], row[1]))
    logger.info(f"Read {len(edges)} call edges from {path_obj}")
    return edges


def _edges_from_mapping(data: Any, path: Path) -> List[Tuple[str, str]]:
    if data is None:
        return []
    if not isinstance(data, dict):
        raise SnapshotError("call graph document must map callers to lists of callees", file=str(path))
    edges = []
    for caller, callees in data.items():
        if isinstance(callees, str):
            callees = [callees]
        elif callees is None:
            callees = []
        elif not isinstance(callees, list):
            raise SnapshotError(f"callees of '{caller}' must be a list", file=str(path))
        edges.extend((str(caller), str(callee)) for callee in callees)
    logger.info(f"Read {len(edges)} call edges from {path}")
    return edges


def load_call_graph(path: str, noise_prefixes: Optional[Sequence[str]] = None) -> CallGraphView:
    return CallGraphView(read_call_graph_edges(path), noise_prefixes=noise_prefixes)


def load_loc_map(path: str, scope: Optional[Sequence[str]] = None) -> Dict[str, int]:
    """
    Read a ``Symbol,LineCount`` CSV into a dict.

    Repeated symbols (overloads collapsed onto one name) are summed. When
    ``scope`` is given, only symbols starting with one of its prefixes are kept.
    """
    path_obj = Path(path)
    prefixes = tuple(p for p in (scope or ()) if p)
    loc: Dict[str, int] = {}
    first = True
    for line_number, row in _csv_rows(path_obj):
        if len(row) != 2 or not row[0]:
            raise SnapshotError(f"expected 'Symbol,LineCount', got {len(row)} fields", file=str(path_obj), line=line_number)
        symbol, raw_count = row
        try:
            count = int(raw_count)
        except ValueError:
            if first:
                first = False
                continue  # header
            raise SnapshotError(f"line count '{raw_count}' is not an integer", file=str(path_obj), line=line_number)
        first = False
        if count < 0:
            raise SnapshotError(f"negative line count for {symbol}", file=str(path_obj), line=line_number)
        if prefixes and not symbol.startswith(prefixes):
            continue
        loc[symbol] = loc.get(symbol, 0) + count
    logger.info(f"Read {len(loc)} LOC entries from {path_obj}")
    return loc


class _ClassEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    markers: List[str] = Field(default_factory=list)
    methods: Union[Dict[str, Optional[List[str]]], List[str]] = Field(default_factory=dict)
    contains: List[str] = Field(default_factory=list)


class _UniverseDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    classes: Dict[str, Optional[_ClassEntry]] = Field(default_factory=dict)


def universe_from_document(data: Any, source: Optional[str] = None) -> SymbolUniverse:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SnapshotError("symbol document must be a mapping", file=source)
    try:
        parsed = _UniverseDocument.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(format_validation_error(e), file=source) from e

    universe = SymbolUniverse()
    for type_name, entry in parsed.classes.items():
        entry = entry or _ClassEntry()
        universe.add_class(type_name, entry.markers)
        methods = entry.methods
        if isinstance(methods, list):
            methods = {name: [] for name in methods}
        for method_name, markers in methods.items():
            universe.add_method(type_name, method_name, markers or [])
        for inner in entry.contains:
            universe.add_class(inner)
            universe.add_nested(type_name, inner)
    return universe


def load_symbol_universe(path: str) -> SymbolUniverse:
    path_obj = Path(path)
    universe = universe_from_document(_read_structured(path_obj), source=str(path_obj))
    logger.info(f"Read {len(universe.classes)} classes and {len(universe.methods)} methods from {path_obj}")
    return universe
