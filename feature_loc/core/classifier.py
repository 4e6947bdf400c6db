"""
Rule-based entry-point classification.

Turns the symbol universe and its markers into ``{feature_key: {method symbols}}``
using the rules held by a ConfigCatalog. Each method lands in at most one
feature; when several rules match, the earliest declared one wins.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from feature_loc.core.catalog import ConfigCatalog
from feature_loc.core.models import (
    MethodMappingRule,
    SymbolUniverse,
    parse_marker,
    simple_type_name,
    split_symbol,
)
from feature_loc.core.rule_defaults import ACTION_VERBS, DEFAULT_ACTION

logger = logging.getLogger("feature_loc.classifier")

MarkerLookup = Callable[[str], Iterable[str]]

_CONTROLLER_SUFFIX = "Controller"


@dataclass(frozen=True)
class ClassifiedEntryPoint:
    """One method assigned to a feature, and how it got there."""
    symbol: str
    feature_key: str
    matched_marker: str
    rule: Optional[MethodMappingRule] = None

    @property
    def is_direct(self) -> bool:
        return self.rule is None


def action_for(method_name: str) -> str:
    """Classify a method name by its leading verb (``createUser`` -> ``creation``)."""
    lowered = method_name.lower()
    for verbs, action in ACTION_VERBS:
        if lowered.startswith(verbs):
            return action
    return DEFAULT_ACTION


def controller_name(type_name: str) -> str:
    simple = simple_type_name(type_name)
    if simple.endswith(_CONTROLLER_SUFFIX):
        simple = simple[: -len(_CONTROLLER_SUFFIX)]
    return simple.lower()


def render_feature_key(pattern: str, symbol: str, marker_value: Optional[str] = None) -> str:
    type_name, method_name = split_symbol(symbol)
    method_name = method_name or ""
    # Overloaded methods may carry a parameter list in the member part
    method_name = re.sub(r"\(.*\)$", "", method_name)
    return pattern.format(
        controller=controller_name(type_name),
        method=method_name,
        action=action_for(method_name),
        value=marker_value or "",
        **{"class": simple_type_name(type_name)},
    )


class EntryPointClassifier:
    """
    Assigns methods to feature keys.

    Priority per method:
    1. a direct marker with a value (``EntryPoint=checkout``) names the feature;
    2. otherwise, if the declaring class is eligible, the first matching
       method mapping rule produces the key;
    3. otherwise the method is not an entry point.
    """

    def __init__(self, catalog: ConfigCatalog, warn_on_ambiguous_rules: bool = False):
        self.catalog = catalog
        self.warn_on_ambiguous_rules = warn_on_ambiguous_rules
        self._class_marker_names = catalog.class_marker_names

    def classify(
        self,
        universe: SymbolUniverse,
        class_markers_of: Optional[MarkerLookup] = None,
        method_markers_of: Optional[MarkerLookup] = None,
    ) -> Dict[str, Set[str]]:
        """Return ``{feature_key: set(method symbols)}`` for the whole universe."""
        result: Dict[str, Set[str]] = {}
        for entry in self.detect(universe, class_markers_of, method_markers_of):
            result.setdefault(entry.feature_key, set()).add(entry.symbol)
        return result

    def detect(
        self,
        universe: SymbolUniverse,
        class_markers_of: Optional[MarkerLookup] = None,
        method_markers_of: Optional[MarkerLookup] = None,
    ) -> List[ClassifiedEntryPoint]:
        """Classify every method, returning detailed records sorted by symbol."""
        if not self.catalog.classification_enabled:
            logger.info("Rule based classification is disabled by the catalog.")
            return []

        class_markers_of = class_markers_of or universe.class_markers_of
        method_markers_of = method_markers_of or universe.method_markers_of

        eligibility: Dict[str, bool] = {}
        entries = []
        for symbol in sorted(universe.methods):
            type_name, _ = split_symbol(symbol)
            class_markers = _marker_names(class_markers_of(type_name))
            if type_name not in eligibility:
                eligibility[type_name] = self.is_eligible(class_markers)
            entry = self.classify_method(
                symbol,
                _parsed_markers(method_markers_of(symbol)),
                class_markers,
                eligibility[type_name],
            )
            if entry is not None:
                entries.append(entry)

        logger.info(f"Classified {len(entries)} entry points out of {len(universe.methods)} methods")
        return entries

    def is_eligible(self, class_marker_names: Iterable[str]) -> bool:
        if not self._class_marker_names:
            return True
        return any(name in self._class_marker_names for name in class_marker_names)

    def classify_method(
        self,
        symbol: str,
        method_markers: List[Tuple[str, Optional[str]]],
        class_marker_names: List[str],
        eligible: bool,
    ) -> Optional[ClassifiedEntryPoint]:
        """Classify one method given its parsed markers and its class's marker names."""
        for name, value in method_markers:
            if name == self.catalog.direct_marker and value:
                return ClassifiedEntryPoint(symbol=symbol, feature_key=value, matched_marker=name)

        if not eligible:
            return None

        matches = self._matching_rules(method_markers, class_marker_names)
        if not matches:
            return None
        if len(matches) > 1 and self.warn_on_ambiguous_rules:
            names = ", ".join(rule.primary_name for rule, _, _ in matches)
            logger.warning(f"{symbol} matches {len(matches)} rules ({names}); using the first")

        rule, marker_name, marker_value = matches[0]
        if not rule.detect_when_present:
            logger.debug(f"{symbol} excluded by rule {rule.primary_name}")
            return None

        pattern = self.catalog.pattern_for(rule)
        if pattern is None:
            key = rule.default_feature
        else:
            key = render_feature_key(pattern, symbol, marker_value)
        if not key:
            logger.warning(f"{symbol}: rule {rule.primary_name} produced an empty feature key, skipping")
            return None
        return ClassifiedEntryPoint(symbol=symbol, feature_key=key, matched_marker=marker_name, rule=rule)

    def _matching_rules(
        self,
        method_markers: List[Tuple[str, Optional[str]]],
        class_marker_names: List[str],
    ) -> List[Tuple[MethodMappingRule, str, Optional[str]]]:
        """Rules that match, in declaration order, with the marker that matched each one."""
        class_markers = [(name, None) for name in class_marker_names]
        matches = []
        for rule in self.catalog.method_rules:
            candidates = class_markers if rule.class_level else method_markers
            for name, value in candidates:
                if rule.matches(name):
                    matches.append((rule, name, value))
                    break
            if matches and not self.warn_on_ambiguous_rules:
                break
        return matches


def _parsed_markers(markers: Iterable[str]) -> List[Tuple[str, Optional[str]]]:
    return [parse_marker(m) for m in sorted(markers)]


def _marker_names(markers: Iterable[str]) -> List[str]:
    return [parse_marker(m)[0] for m in sorted(markers)]
