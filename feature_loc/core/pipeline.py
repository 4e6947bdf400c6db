"""
Orchestrates one attribution run: classify, resolve, reach, attribute.

Everything is built fresh from the inputs handed to FeatureLocAnalyzer and
nothing is kept between runs.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from feature_loc.core.call_graph import CallGraphView
from feature_loc.core.catalog import ConfigCatalog
from feature_loc.core.classifier import ClassifiedEntryPoint, EntryPointClassifier
from feature_loc.core.config import FeatureLocConfig
from feature_loc.core.errors import SymbolResolutionWarning
from feature_loc.core.loc_attributor import LocAttributor
from feature_loc.core.models import FeatureAttribution, FeatureDefinition, SymbolUniverse
from feature_loc.core.reachability import ReachabilitySolver, run_per_feature

logger = logging.getLogger("feature_loc.pipeline")


@dataclass
class AnalysisResult:
    records: List[FeatureAttribution] = field(default_factory=list)
    features: List[FeatureDefinition] = field(default_factory=list)
    reachable: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    entry_points: List[ClassifiedEntryPoint] = field(default_factory=list)
    warnings: List[SymbolResolutionWarning] = field(default_factory=list)


class FeatureLocAnalyzer:
    """Main analyzer that ties the classifier, solver and attributor together."""

    def __init__(
        self,
        catalog: ConfigCatalog,
        graph: CallGraphView,
        universe: Optional[SymbolUniverse] = None,
        function_loc: Optional[Mapping[str, int]] = None,
        class_loc: Optional[Mapping[str, int]] = None,
        config: Optional[FeatureLocConfig] = None,
    ):
        self.catalog = catalog
        self.graph = graph
        self.universe = universe if universe is not None else SymbolUniverse()
        self.function_loc = dict(function_loc or {})
        self.class_loc = dict(class_loc or {})
        self.config = config or FeatureLocConfig(show_progress=False)

        self.classifier = EntryPointClassifier(catalog, warn_on_ambiguous_rules=self.config.warn_on_ambiguous_rules)
        self.solver = ReachabilitySolver(graph)
        self.attributor = LocAttributor()

    def is_known(self, symbol: str) -> bool:
        return symbol in self.universe or symbol in self.graph

    def detect_entry_points(self) -> List[ClassifiedEntryPoint]:
        return self.classifier.detect(self.universe)

    def resolve_features(
        self, entry_points: Optional[List[ClassifiedEntryPoint]] = None
    ) -> Tuple[List[FeatureDefinition], List[SymbolResolutionWarning]]:
        """
        Merge declared and classified features and drop unknown entry points.

        A classified key that matches a declared feature adds its entry points
        to the declared one; the declared name, description and scope are kept.
        Returns the features sorted by key plus the resolution warnings.
        """
        if entry_points is None:
            entry_points = self.detect_entry_points()

        features: Dict[str, FeatureDefinition] = {}
        for key, declared in self.catalog.features.items():
            features[key] = FeatureDefinition(
                key=declared.key,
                display_name=declared.display_name,
                description=declared.description,
                entry_points=set(declared.entry_points),
                package_scope=set(declared.package_scope),
                declared=True,
            )
        for entry in entry_points:
            feature = features.get(entry.feature_key)
            if feature is None:
                feature = FeatureDefinition(key=entry.feature_key, display_name=entry.feature_key)
                features[entry.feature_key] = feature
            feature.entry_points.add(entry.symbol)

        warnings = []
        for feature in features.values():
            unresolved = sorted(s for s in feature.entry_points if not self.is_known(s))
            for symbol in unresolved:
                logger.warning(f"Feature '{feature.key}': entry point {symbol} is not a known symbol, dropping it")
                warnings.append(SymbolResolutionWarning(symbol, "unknown entry point", feature.key))
            feature.entry_points.difference_update(unresolved)

        return [features[key] for key in sorted(features)], warnings

    def check_loc_keys(self) -> List[SymbolResolutionWarning]:
        """LOC keys that name no known symbol. Only checked when a symbol universe was supplied."""
        if not len(self.universe):
            return []
        warnings = []
        for kind, loc_map in (("function", self.function_loc), ("class", self.class_loc)):
            for symbol in sorted(loc_map):
                if not self.is_known(symbol):
                    warnings.append(SymbolResolutionWarning(symbol, f"{kind} LOC entry for unknown symbol"))
        if warnings:
            logger.warning(f"{len(warnings)} LOC entries do not match any known symbol; they are ignored")
        return warnings

    def _process_feature(
        self, feature: FeatureDefinition
    ) -> Tuple[FrozenSet[str], FeatureAttribution, List[SymbolResolutionWarning]]:
        reachable = self.solver.reach_feature(feature)
        record, warnings = self.attributor.attribute_with_warnings(
            feature, reachable, self.function_loc, self.class_loc, self.graph
        )
        logger.debug(
            f"Feature '{feature.key}': {len(reachable)} reachable symbols, "
            f"{record.total_function_loc} function LOC"
        )
        return reachable, record, warnings

    def analyze(self) -> AnalysisResult:
        """
        Run the complete attribution pipeline.

        Returns:
            AnalysisResult with one record per feature, sorted by feature key.
        """
        logger.info("Step 1: Classifying entry points...")
        entry_points = self.detect_entry_points()

        logger.info("Step 2: Resolving features...")
        features, warnings = self.resolve_features(entry_points)
        warnings.extend(self.check_loc_keys())
        logger.info(f"   {len(features)} features to attribute")

        logger.info("Step 3: Computing reachability and LOC per feature...")
        outcomes = run_per_feature(
            self._process_feature,
            features,
            workers=self.config.workers,
            show_progress=self.config.show_progress,
            desc="Attributing",
        )

        result = AnalysisResult(features=features, entry_points=entry_points)
        for feature, (reachable, record, feature_warnings) in zip(features, outcomes):
            result.reachable[feature.key] = reachable
            result.records.append(record)
            warnings.extend(feature_warnings)
        result.warnings = warnings

        logger.info(f"Analysis complete: {len(result.records)} features, {len(result.warnings)} warnings")
        return result
