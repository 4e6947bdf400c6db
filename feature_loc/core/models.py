"""
Data model shared by the classifier, solver, attributor and exporter.

Symbols are plain strings: ``"pkg.Type#member"`` for methods and
``"pkg.Type"`` for classes. They are compared by exact string equality.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

METHOD_SEPARATOR = "#"
MARKER_VALUE_SEPARATOR = "="


def to_symbol(declaring_type: str, member: Optional[str] = None) -> str:
    if member is None:
        return declaring_type
    return f"{declaring_type}{METHOD_SEPARATOR}{member}"


def split_symbol(symbol: str) -> Tuple[str, Optional[str]]:
    """Split a symbol into ``(declaring_type, member)``; member is None for classes."""
    declaring, sep, member = symbol.partition(METHOD_SEPARATOR)
    if not sep:
        return symbol, None
    return declaring, member


def is_method_symbol(symbol: str) -> bool:
    return METHOD_SEPARATOR in symbol


def declaring_type(symbol: str) -> str:
    return split_symbol(symbol)[0]


def simple_type_name(type_name: str) -> str:
    return type_name.rsplit(".", 1)[-1]


def parse_marker(marker: str) -> Tuple[str, Optional[str]]:
    """Split ``"Name=value"`` into ``("Name", "value")``; bare names have no value."""
    name, sep, value = marker.partition(MARKER_VALUE_SEPARATOR)
    name = name.strip()
    if not sep:
        return name, None
    value = value.strip()
    return name, value or None


@dataclass(frozen=True)
class ClassMarkerRule:
    name: str


@dataclass(frozen=True)
class MethodMappingRule:
    """Maps a method-level marker (or one of its aliases) to a feature key pattern."""
    primary_name: str
    aliases: FrozenSet[str] = frozenset()
    feature_pattern: Optional[str] = None
    default_feature: Optional[str] = None
    class_level: bool = False
    detect_when_present: bool = True

    def matches(self, marker_name: str) -> bool:
        return marker_name == self.primary_name or marker_name in self.aliases


@dataclass
class FeatureDefinition:
    key: str
    display_name: str
    description: Optional[str] = None
    entry_points: Set[str] = field(default_factory=set)
    package_scope: Set[str] = field(default_factory=set)
    declared: bool = False


@dataclass
class SymbolUniverse:
    """
    Known classes and methods of the analysed program, with their markers.

    ``class_markers`` and ``method_markers`` hold raw marker strings as
    delivered by the symbol extractor (``"Name"`` or ``"Name=value"``).
    ``containment`` maps an outer class to the classes nested inside it.
    """
    classes: Set[str] = field(default_factory=set)
    methods: Set[str] = field(default_factory=set)
    class_markers: Dict[str, Set[str]] = field(default_factory=dict)
    method_markers: Dict[str, Set[str]] = field(default_factory=dict)
    containment: Dict[str, List[str]] = field(default_factory=dict)

    def add_class(self, type_name: str, markers: Iterable[str] = ()) -> None:
        self.classes.add(type_name)
        self.class_markers.setdefault(type_name, set()).update(markers)

    def add_method(self, type_name: str, method_name: str, markers: Iterable[str] = ()) -> str:
        self.classes.add(type_name)
        symbol = to_symbol(type_name, method_name)
        self.methods.add(symbol)
        self.method_markers.setdefault(symbol, set()).update(markers)
        return symbol

    def add_nested(self, outer: str, inner: str) -> None:
        children = self.containment.setdefault(outer, [])
        if inner not in children:
            children.append(inner)

    def class_markers_of(self, type_name: str) -> Set[str]:
        return self.class_markers.get(type_name, set())

    def method_markers_of(self, symbol: str) -> Set[str]:
        return self.method_markers.get(symbol, set())

    def __contains__(self, symbol: str) -> bool:
        return symbol in self.methods or symbol in self.classes

    def __len__(self) -> int:
        return len(self.classes) + len(self.methods)


@dataclass(frozen=True)
class FeatureAttribution:
    feature_key: str
    display_name: str
    description: Optional[str]
    entry_point_count: int
    reachable_class_count: int
    reachable_function_count: int
    total_class_loc: int
    total_function_loc: int
    internal_edge_count: int


class FeatureAttributionBuilder:
    """Accumulates per-feature totals and freezes them into a FeatureAttribution."""

    def __init__(self, feature: FeatureDefinition):
        self.feature = feature
        self.reachable_classes: Set[str] = set()
        self.reachable_functions: Set[str] = set()
        self.total_class_loc = 0
        self.total_function_loc = 0
        self.internal_edge_count = 0
        self._built = False

    def add_function_loc(self, lines: int) -> None:
        self.total_function_loc += lines

    def add_class_loc(self, lines: int) -> None:
        self.total_class_loc += lines

    def build(self) -> FeatureAttribution:
        if self._built:
            raise RuntimeError(f"attribution for '{self.feature.key}' already built")
        self._built = True
        return FeatureAttribution(
            feature_key=self.feature.key,
            display_name=self.feature.display_name,
            description=self.feature.description,
            entry_point_count=len(self.feature.entry_points),
            reachable_class_count=len(self.reachable_classes),
            reachable_function_count=len(self.reachable_functions),
            total_class_loc=self.total_class_loc,
            total_function_loc=self.total_function_loc,
            internal_edge_count=self.internal_edge_count,
        )
