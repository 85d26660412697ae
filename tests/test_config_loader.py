"""Tests for config loading and scoring settings."""

import os
import pytest
import tempfile
import yaml

from peerscope.libs.config_loader import (
    load_all_configs, load_configs, load_default_configs, get_config, merge_configs,
)
from peerscope.tools.peer_review.settings import ScoringSettings


def write_yaml(data) -> str:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        yaml.dump(data, f)
        return f.name


def test_load_single_config():
    """Test loading a single config file."""
    config_data = {
        "peer_review": {"scheme": "penalty"},
        "export": {"summary_file": "summary.yaml"}
    }
    temp_path = write_yaml(config_data)

    try:
        result = load_configs(temp_path)
        assert result == config_data
    finally:
        os.unlink(temp_path)


def test_load_multiple_configs_merge():
    """Test loading and merging multiple config files."""
    config1 = {
        "peer_review": {"rubric_max": 12, "reliability": {"min_graders": 2, "max_std_dev": 3}},
    }
    config2 = {
        "peer_review": {"reliability": {"min_graders": 3}},  # This should override
        "export": {"summary_file": "out.yaml"}  # This should be added
    }

    expected = {
        "peer_review": {"rubric_max": 12, "reliability": {"min_graders": 3, "max_std_dev": 3}},
        "export": {"summary_file": "out.yaml"}
    }

    temp_path1 = write_yaml(config1)
    temp_path2 = write_yaml(config2)

    try:
        result = load_configs(temp_path1, temp_path2)
        assert result == expected
    finally:
        os.unlink(temp_path1)
        os.unlink(temp_path2)


def test_merge_does_not_mutate():
    """Test that merging leaves both inputs untouched."""
    orig = {"a": {"b": 1}}
    new = {"a": {"c": 2}}
    assert merge_configs(orig, new) == {"a": {"b": 1, "c": 2}}
    assert orig == {"a": {"b": 1}}


def test_load_missing_file():
    """Test that missing files are skipped with warning."""
    config_data = {"peer_review": {"scheme": "bonus"}}
    temp_path = write_yaml(config_data)

    try:
        # Load existing file and non-existing file
        result = load_configs(temp_path, "nonexistent.yaml")
        assert result == config_data
    finally:
        os.unlink(temp_path)


def test_no_configs_loaded():
    """Test that ValueError is raised when no configs are loaded."""
    with pytest.raises(ValueError, match="No configs loaded"):
        load_configs("nonexistent1.yaml", "nonexistent2.yaml")


def test_invalid_yaml_type():
    """Test that TypeError is raised for non-dict YAML."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write("just a string, not a dict")
        temp_path = f.name

    try:
        with pytest.raises(TypeError, match="must be a dict"):
            load_configs(temp_path)
    finally:
        os.unlink(temp_path)


def test_get_config():
    """Test getting config values by dot-separated key."""
    config = {
        "peer_review": {
            "rubric_max": 12,
            "penalty": {"per_review": 0.2}
        },
    }

    assert get_config("peer_review.rubric_max", config) == 12
    assert get_config("peer_review.penalty.per_review", config) == 0.2

    with pytest.raises(KeyError):
        get_config("nonexistent.key", config)

    with pytest.raises(KeyError):
        get_config("peer_review.rubric_max.deeper", config)


def test_default_configs():
    """Test the shipped default.yaml."""
    config = load_default_configs()
    assert get_config("peer_review.scheme", config) == "bonus"
    assert get_config("export.student_scores_file", config) == "student-work-scores.csv"


class TestLoadAllConfigs:
    """Test merging every YAML file of a config directory."""

    def test_merges_in_name_order(self, tmp_path):
        (tmp_path / 'a.yaml').write_text(yaml.dump({"peer_review": {"scheme": "bonus", "rubric_max": 12}}))
        (tmp_path / 'b.yml').write_text(yaml.dump({"peer_review": {"scheme": "penalty"}}))
        (tmp_path / 'notes.txt').write_text("peer_review: ignored")

        result = load_all_configs(str(tmp_path))

        assert result == {"peer_review": {"scheme": "penalty", "rubric_max": 12}}

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ValueError, match="Config directory not found"):
            load_all_configs(str(tmp_path / 'missing'))

    def test_no_yaml_files(self, tmp_path):
        (tmp_path / 'readme.txt').write_text("nothing here")
        with pytest.raises(ValueError, match="No YAML files found"):
            load_all_configs(str(tmp_path))


class TestScoringSettings:
    """Test building ScoringSettings from config."""

    def test_defaults_match_default_yaml(self):
        assert ScoringSettings.from_config(load_default_configs()) == ScoringSettings()

    def test_nested_overrides(self):
        settings = ScoringSettings.from_config({
            "peer_review": {
                "scheme": "penalty",
                "reliability": {"min_graders": 3},
                "penalty": {"per_review": 0.5},
                "comments": {"min_quality_length": 5},
            }
        })
        assert settings.scheme == "penalty"
        assert settings.min_graders == 3
        assert settings.penalty_per_review == 0.5
        assert settings.min_quality_length == 5
        assert settings.max_std_dev == 3

    def test_empty_config(self):
        assert ScoringSettings.from_config(None) == ScoringSettings()
        assert ScoringSettings.from_config({}) == ScoringSettings()
