import pytest
import yaml

from feature_loc.core.config import DEFAULT_NOISE_PREFIXES, FeatureLocConfig, load_config
from feature_loc.core.errors import ConfigError


def test_defaults_without_file(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    config = load_config()

    assert config.noise_prefixes == DEFAULT_NOISE_PREFIXES
    assert config.workers == 1
    assert config.output_format == "csv"


def test_file_values_and_cli_overrides(tmp_path) -> None:
    path = tmp_path / "featureloc.config.yaml"
    path.write_text(yaml.dump({"workers": 4, "noise_prefixes": ["org.slf4j."], "output_format": "json"}))

    config = load_config(str(path), cli_args={"workers": 2, "output_format": None})

    assert config.workers == 2
    assert config.output_format == "json"
    assert config.noise_prefixes == ["org.slf4j."]


def test_invalid_values_raise_config_error(tmp_path) -> None:
    path = tmp_path / "featureloc.config.yaml"
    path.write_text(yaml.dump({"workers": 0}))
    with pytest.raises(ConfigError):
        load_config(str(path))

    with pytest.raises(ConfigError):
        load_config(str(path), cli_args={"workers": 1, "output_format": "xml"})


def test_missing_explicit_path_falls_back_to_defaults(tmp_path) -> None:
    config = load_config(str(tmp_path / "nope.yaml"))
    assert config.workers == 1


def test_output_format_inferred_from_suffix() -> None:
    config = FeatureLocConfig()
    assert config.resolved_output_format("out/report.yml") == "yaml"
    assert config.resolved_output_format("report.json") == "json"
    assert config.resolved_output_format("report.csv") == "csv"
    assert config.resolved_output_format(None) == "csv"
