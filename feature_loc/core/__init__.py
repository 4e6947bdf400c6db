"""
Core engine for attributing lines of code to features via call graph reachability.
"""

from .models import (
    ClassMarkerRule,
    FeatureAttribution,
    FeatureAttributionBuilder,
    FeatureDefinition,
    MethodMappingRule,
    SymbolUniverse,
)
from .errors import ConfigError, SnapshotError, SymbolResolutionWarning
from .config import FeatureLocConfig, load_config
from .catalog import ConfigCatalog, load_catalog, load_document
from .classifier import ClassifiedEntryPoint, EntryPointClassifier
from .call_graph import CallGraphView
from .reachability import ReachabilitySolver
from .loc_attributor import LocAttributor, rollup_class_loc
from .exporter import ResultExporter
from .snapshots import load_call_graph, load_loc_map, load_symbol_universe
from .pipeline import AnalysisResult, FeatureLocAnalyzer

__all__ = [
    "ClassMarkerRule",
    "FeatureAttribution",
    "FeatureAttributionBuilder",
    "FeatureDefinition",
    "MethodMappingRule",
    "SymbolUniverse",
    "ConfigError",
    "SnapshotError",
    "SymbolResolutionWarning",
    "FeatureLocConfig",
    "load_config",
    "ConfigCatalog",
    "load_catalog",
    "load_document",
    "ClassifiedEntryPoint",
    "EntryPointClassifier",
    "CallGraphView",
    "ReachabilitySolver",
    "LocAttributor",
    "rollup_class_loc",
    "ResultExporter",
    "load_call_graph",
    "load_loc_map",
    "load_symbol_universe",
    "AnalysisResult",
    "FeatureLocAnalyzer",
]
