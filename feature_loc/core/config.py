import yaml
import logging
from typing import List, Optional, Dict, Any
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError

from feature_loc.core.errors import ConfigError

# Default configuration values
DEFAULT_CONFIG_PATH = "featureloc.config.yaml"
DEFAULT_NOISE_PREFIXES = ["java.", "javax.", "sun.", "com.sun.", "jdk.", "com.fasterxml."]
DEFAULT_WORKERS = 1
DEFAULT_OUTPUT_FORMAT = "csv"
DEFAULT_SHOW_PROGRESS = True
DEFAULT_WARN_ON_AMBIGUOUS_RULES = False

OUTPUT_FORMATS = ("csv", "yaml", "json")


class FeatureLocConfig(BaseModel):
    """
    Run configuration for a feature LOC analysis.

    The feature/rule catalog is a separate document; this model only carries
    settings that control how one run behaves.
    """
    noise_prefixes: List[str] = Field(default_factory=lambda: list(DEFAULT_NOISE_PREFIXES))
    workers: int = Field(default=DEFAULT_WORKERS, ge=1)
    output_format: str = Field(default=DEFAULT_OUTPUT_FORMAT)
    show_progress: bool = DEFAULT_SHOW_PROGRESS
    warn_on_ambiguous_rules: bool = DEFAULT_WARN_ON_AMBIGUOUS_RULES

    # Default input locations
    features_path: Optional[str] = None
    call_graph_path: Optional[str] = None
    function_loc_path: Optional[str] = None
    class_loc_path: Optional[str] = None
    symbols_path: Optional[str] = None

    def resolved_output_format(self, output_path: Optional[str] = None) -> str:
        """Output format, inferred from the output file suffix when it is unambiguous."""
        if output_path:
            suffix = Path(output_path).suffix.lower()
            if suffix in (".yaml", ".yml"):
                return "yaml"
            if suffix == ".json":
                return "json"
        return self.output_format


def load_config(
    config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> FeatureLocConfig:
    """
    Load configuration from file and overrides.

    Priority:
    1. CLI Arguments (if provided and not None)
    2. Config File (if provided or found at default path)
    3. Default Values

    Args:
        config_path: Path to the YAML config file. If None, tries 'featureloc.config.yaml'.
        cli_args: Dictionary of CLI arguments to override config values.

    Returns:
        FeatureLocConfig: The resolved configuration object.

    Raises:
        ConfigError: If the file is not valid YAML or a value fails validation.
    """
    config_data: Dict[str, Any] = {}

    target_path = config_path if config_path else DEFAULT_CONFIG_PATH
    path_obj = Path(target_path)

    if path_obj.exists() and path_obj.is_file():
        with open(path_obj, 'r', encoding='utf-8') as f:
            try:
                file_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML: {e}", file=str(path_obj), error_type="yaml_parse") from e
        if file_data:
            if not isinstance(file_data, dict):
                raise ConfigError("Config file must contain a mapping", file=str(path_obj))
            config_data.update(file_data)
        logging.info(f"Loaded configuration from {target_path}")
    elif config_path:
        # If user explicitly provided a path that does not exist, warn them
        logging.warning(f"Config file not found at explicit path: {config_path}")
    else:
        logging.info(f"No config file found at {DEFAULT_CONFIG_PATH}, using defaults.")

    if cli_args:
        for key, value in cli_args.items():
            if value is not None:
                config_data[key] = value

    try:
        config = FeatureLocConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(format_validation_error(e), file=str(path_obj) if path_obj.exists() else None) from e

    if config.output_format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, got '{config.output_format}'",
            file=str(path_obj) if path_obj.exists() else None,
        )
    return config


def format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "; ".join(parts)
