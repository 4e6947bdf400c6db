"""
Feature and classification-rule catalog.

A catalog document is a YAML or JSON mapping with an optional ``features``
block (explicitly declared features) and an optional ``annotation-config``
block (rules used by the entry-point classifier)::

    features:
      user-admin:
        name: User administration
        description: Create and delete users
        entry-points:
          - com.example.UserController#createUser
        packages:
          - com.example.user

    annotation-config:
      class-level-annotations: [RestController]
      method-level-annotations:
        - annotation: GetMapping
          feature-pattern: "{controller}-retrieval"
          aliases: [Get, HttpGet]
"""

import json
import logging
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from feature_loc.core.config import format_validation_error
from feature_loc.core.errors import ConfigError
from feature_loc.core.models import ClassMarkerRule, FeatureDefinition, MethodMappingRule
from feature_loc.core.rule_defaults import (
    DEFAULT_CLASS_MARKERS,
    DEFAULT_DIRECT_MARKER,
    DEFAULT_FEATURE_PATTERN,
    DEFAULT_METHOD_MAPPINGS,
    PATTERN_PLACEHOLDERS,
)

logger = logging.getLogger("feature_loc.catalog")


class _DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MethodMappingModel(_DocumentModel):
    annotation: str = Field(min_length=1)
    feature_pattern: Optional[str] = Field(default=None, alias="feature-pattern")
    aliases: List[str] = Field(default_factory=list)
    default_feature: Optional[str] = Field(default=None, alias="default-feature")
    class_level: bool = Field(default=False, alias="class-level")
    detect_when_present: bool = Field(default=True, alias="detect-when-present")


class AnnotationConfigModel(_DocumentModel):
    # None means "not given": the built-in table is used for that list
    class_level_annotations: Optional[List[str]] = Field(default=None, alias="class-level-annotations")
    method_level_annotations: Optional[List[MethodMappingModel]] = Field(
        default=None, alias="method-level-annotations"
    )
    default_feature_pattern: str = Field(default=DEFAULT_FEATURE_PATTERN, alias="default-feature-pattern")
    entry_point_annotation: str = Field(default=DEFAULT_DIRECT_MARKER, alias="entry-point-annotation")
    enabled: bool = True


class FeatureModel(_DocumentModel):
    name: Optional[str] = None
    description: Optional[str] = None
    entry_points: List[str] = Field(alias="entry-points")
    # null reads as an empty list
    packages: Optional[List[str]] = None


class CatalogDocument(_DocumentModel):
    features: Dict[str, FeatureModel] = Field(default_factory=dict)
    annotation_config: Optional[AnnotationConfigModel] = Field(default=None, alias="annotation-config")


@dataclass
class ConfigCatalog:
    """Validated classification rules and declared features for one run."""
    class_rules: List[ClassMarkerRule] = field(default_factory=list)
    method_rules: List[MethodMappingRule] = field(default_factory=list)
    features: Dict[str, FeatureDefinition] = field(default_factory=dict)
    default_feature_pattern: str = DEFAULT_FEATURE_PATTERN
    direct_marker: str = DEFAULT_DIRECT_MARKER
    classification_enabled: bool = True
    source: Optional[str] = None

    @classmethod
    def defaults(cls) -> "ConfigCatalog":
        """Catalog with the built-in stereotype and mapping tables and no declared features."""
        return cls.from_document({})

    @classmethod
    def from_document(cls, document: Optional[Dict[str, Any]], source: Optional[str] = None) -> "ConfigCatalog":
        """
        Build a catalog from an already-parsed document.

        Without an ``annotation-config`` block the built-in rules are used,
        unless the document declares features, in which case rule based
        classification is off and only the declared features are analysed.

        Raises:
            ConfigError: If the document does not match the expected shape or
                a rule cannot produce a feature key.
        """
        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise ConfigError("Catalog document must be a mapping", file=source)

        try:
            parsed = CatalogDocument.model_validate(document)
        except ValidationError as e:
            raise ConfigError(format_validation_error(e), file=source) from e

        annotation_config = parsed.annotation_config
        classification_enabled = True
        if annotation_config is None:
            annotation_config = AnnotationConfigModel()
            classification_enabled = not parsed.features

        catalog = cls(
            default_feature_pattern=annotation_config.default_feature_pattern,
            direct_marker=annotation_config.entry_point_annotation,
            classification_enabled=classification_enabled and annotation_config.enabled,
            source=source,
        )
        catalog.class_rules = _build_class_rules(annotation_config)
        catalog.method_rules = _build_method_rules(annotation_config, source)
        catalog.features = _build_features(parsed.features)
        catalog.validate()

        logger.info(
            f"Catalog loaded: {len(catalog.features)} declared features, "
            f"{len(catalog.class_rules)} class rules, {len(catalog.method_rules)} method rules"
        )
        return catalog

    def validate(self) -> None:
        """Check every rule can produce a feature key; raise ConfigError otherwise."""
        if not self.direct_marker.strip():
            raise ConfigError("entry-point-annotation must not be empty", file=self.source)
        if self.default_feature_pattern.strip():
            check_pattern(self.default_feature_pattern, "default-feature-pattern", self.source)

        for index, rule in enumerate(self.method_rules):
            where = f"method-level-annotations[{index}] ({rule.primary_name})"
            if rule.feature_pattern:
                check_pattern(rule.feature_pattern, where, self.source)
            elif not rule.default_feature and not self.default_feature_pattern.strip():
                raise ConfigError(
                    f"{where}: rule has neither feature-pattern nor default-feature "
                    f"and no default-feature-pattern is configured",
                    file=self.source,
                    error_type="rule_incomplete",
                )

    def pattern_for(self, rule: MethodMappingRule) -> Optional[str]:
        """
        Pattern a rule instantiates: its own, or the catalog default.

        Returns None when the rule names a literal ``default-feature``; that key
        is used as written and never rendered.
        """
        if rule.feature_pattern:
            return rule.feature_pattern
        if rule.default_feature:
            return None
        return self.default_feature_pattern

    @property
    def class_marker_names(self) -> frozenset:
        return frozenset(rule.name for rule in self.class_rules)


def check_pattern(pattern: str, where: str, source: Optional[str] = None) -> None:
    """Reject patterns that reference placeholders the classifier cannot fill."""
    try:
        fields = [name for _, name, _, _ in string.Formatter().parse(pattern) if name is not None]
    except ValueError as e:
        raise ConfigError(f"{where}: malformed feature pattern '{pattern}': {e}", file=source) from e
    for name in fields:
        if name not in PATTERN_PLACEHOLDERS:
            raise ConfigError(
                f"{where}: unknown placeholder '{{{name}}}' in feature pattern '{pattern}' "
                f"(allowed: {', '.join(sorted(PATTERN_PLACEHOLDERS))})",
                file=source,
                error_type="pattern_invalid",
            )


def _build_class_rules(config: AnnotationConfigModel) -> List[ClassMarkerRule]:
    names = config.class_level_annotations
    if names is None:
        names = DEFAULT_CLASS_MARKERS
    rules = []
    seen = set()
    for name in names:
        name = name.strip()
        if name and name not in seen:
            seen.add(name)
            rules.append(ClassMarkerRule(name=name))
    return rules


def _build_method_rules(config: AnnotationConfigModel, source: Optional[str]) -> List[MethodMappingRule]:
    if config.method_level_annotations is None:
        return [
            MethodMappingRule(primary_name=name, aliases=frozenset(aliases), feature_pattern=pattern)
            for name, pattern, aliases in DEFAULT_METHOD_MAPPINGS
        ]

    rules = []
    for index, mapping in enumerate(config.method_level_annotations):
        primary = mapping.annotation.strip()
        if not primary:
            raise ConfigError(f"method-level-annotations[{index}]: annotation must not be blank", file=source)
        rules.append(MethodMappingRule(
            primary_name=primary,
            aliases=frozenset(a.strip() for a in mapping.aliases if a.strip()),
            feature_pattern=mapping.feature_pattern or None,
            default_feature=mapping.default_feature or None,
            class_level=mapping.class_level,
            detect_when_present=mapping.detect_when_present,
        ))
    return rules


def _build_features(models: Dict[str, FeatureModel]) -> Dict[str, FeatureDefinition]:
    features = {}
    for key, model in models.items():
        key = str(key)
        if not key.strip():
            raise ConfigError("Feature key must not be blank")
        features[key] = FeatureDefinition(
            key=key,
            display_name=model.name or key,
            description=model.description,
            entry_points=set(model.entry_points),
            package_scope={p for p in model.packages or () if p},
            declared=True,
        )
    return features


def load_document(path: str) -> Dict[str, Any]:
    """
    Read a YAML or JSON document into a dict.

    The format is chosen by file extension; anything other than ``.json`` is
    read as YAML (which also accepts JSON). OSError propagates unchanged.
    """
    path_obj = Path(path)
    with open(path_obj, "r", encoding="utf-8") as f:
        text = f.read()

    try:
        if path_obj.suffix.lower() == ".json":
            data = json.loads(text) if text.strip() else None
        else:
            data = yaml.safe_load(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON: {e.msg}", file=str(path_obj), line=e.lineno, error_type="json_parse") from e
    except yaml.YAMLError as e:
        line = None
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line = mark.line + 1
        raise ConfigError(f"Invalid YAML: {e}", file=str(path_obj), line=line, error_type="yaml_parse") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Document must contain a mapping at the top level", file=str(path_obj))
    return data


def load_catalog(path: Optional[str] = None) -> ConfigCatalog:
    """Load a catalog from ``path``; without a path the built-in rules are used."""
    if not path:
        logger.info("No feature catalog given, using built-in classification rules.")
        return ConfigCatalog.defaults()
    return ConfigCatalog.from_document(load_document(path), source=str(path))
