"""
Converter settings tests.
"""

import pytest

from bibobridge.application.services.citation_keys import KeyStrategy
from bibobridge.utils.settings import ConverterSettings, load_settings


class TestConverterSettings:
    """Defaults and validation."""

    def test_defaults(self):
        settings = load_settings(environ={})
        assert settings == ConverterSettings()
        assert settings.key_strategy == KeyStrategy.AUTHOR_YEAR
        assert settings.strict_identifiers is False
        assert settings.allow_future_dates is True
        assert settings.max_workers == 4
        assert settings.base_iri is None

    def test_strategy_spelling_normalized(self):
        assert ConverterSettings(key_strategy="Author-Title").key_strategy == KeyStrategy.AUTHOR_TITLE

    def test_blank_base_iri(self):
        assert ConverterSettings(base_iri="  ").base_iri is None

    def test_frozen(self):
        settings = ConverterSettings()
        with pytest.raises(Exception):
            settings.max_workers = 8


class TestLoadSettings:
    """YAML file and environment precedence."""

    def test_yaml_section(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "converter:\n  key_strategy: hash\n  strict_identifiers: true\n  base_iri: https://example.org/bib/\n",
            encoding="utf-8",
        )
        settings = load_settings(path, environ={})
        assert settings.key_strategy == KeyStrategy.HASH
        assert settings.strict_identifiers is True
        assert settings.base_iri == "https://example.org/bib/"

    def test_env_overrides_yaml(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("converter:\n  max_workers: 2\n", encoding="utf-8")
        settings = load_settings(path, environ={"BIBOBRIDGE_MAX_WORKERS": "8", "BIBOBRIDGE_ALLOW_FUTURE_DATES": "false"})
        assert settings.max_workers == 8
        assert settings.allow_future_dates is False

    def test_blank_env_ignored(self):
        assert load_settings(environ={"BIBOBRIDGE_KEY_STRATEGY": "  "}).key_strategy == KeyStrategy.AUTHOR_YEAR

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path, environ={}) == ConverterSettings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml", environ={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("converter: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_settings(path, environ={})

    def test_section_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("converter:\n  - a\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_settings(path, environ={})

    def test_invalid_value_names_the_key(self):
        with pytest.raises(ValueError, match="Invalid setting 'max_workers'"):
            load_settings(environ={"BIBOBRIDGE_MAX_WORKERS": "0"})

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "extra.yaml"
        path.write_text("converter:\n  colour: blue\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid setting 'colour'"):
            load_settings(path, environ={})
