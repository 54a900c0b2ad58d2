"""
Unit tests for the Pydantic configuration and the Configuration facade.
"""

import json
from pathlib import Path

import pytest
import toml
from pydantic import ValidationError

from bookmark_aggregator.config import (
    AggregatorConfig,
    Configuration,
    ConfigurationManager,
    format_config_error,
)
from bookmark_aggregator.config.pydantic_config import FilterConfig, LoggingConfig, SourceConfig
from bookmark_aggregator.utils.error_handler import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Keep default config file discovery away from the real working directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))


class TestDefaults:
    """Test default configuration values."""

    def test_default_sources(self):
        config = AggregatorConfig()

        assert config.sources["chrome"].enabled
        assert not config.sources["brave"].enabled
        assert not config.sources["chromium"].enabled
        assert config.sources["opml"].custom_path == ""

    def test_default_filter(self):
        f = AggregatorConfig().pipeline.filter

        assert f.exclude_folders == ["Trash"]
        assert f.exclude_schemes == ["data", "javascript"]
        assert f.warn_schemes == ["file", "chrome", "about", "blob"]
        assert f.max_url_length == 0
        assert f.warn_url_length == 2048

    def test_default_renderers(self):
        renderers = AggregatorConfig().renderers

        assert set(renderers) == {"markdown", "json", "yaml", "opml", "html"}
        assert renderers["markdown"].style == "textual"

    def test_unknown_source_enabled(self):
        assert AggregatorConfig().get_source_config("vivaldi").enabled


class TestValidation:
    """Test field validation."""

    def test_user_tables_merge_over_defaults(self):
        config = AggregatorConfig(sources={"Brave": {"enabled": True}, "vivaldi": {}})

        assert config.sources["brave"].enabled
        assert config.sources["chrome"].enabled
        assert "vivaldi" in config.sources

    def test_partial_source_settings_keep_defaults(self):
        config = AggregatorConfig(sources={"chrome": {"profile": "Profile 1"}})

        assert config.sources["chrome"].profile == "Profile 1"
        assert config.sources["chrome"].enabled

    def test_negative_length_rejected(self):
        with pytest.raises(ValidationError):
            FilterConfig(max_url_length=-1)

    def test_schemes_normalized(self):
        assert FilterConfig(exclude_schemes=["JavaScript:", ""]).exclude_schemes == ["javascript"]

    def test_invalid_pattern_warns(self):
        with pytest.warns(UserWarning):
            config = FilterConfig(exclude_url_patterns=["(unclosed"])

        assert config.exclude_url_patterns == ["(unclosed"]

    def test_log_level(self):
        assert LoggingConfig(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

    def test_custom_path_expanded(self, tmp_path):
        assert SourceConfig(custom_path="~/b.html").custom_path == str(tmp_path / "b.html")


class TestConfigurationManager:
    """Test loading from files and the environment."""

    def test_no_file_uses_defaults(self):
        manager = ConfigurationManager()

        assert manager.loaded_from is None
        assert manager.config.logging.level == "INFO"

    def test_load_toml(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            '[sources.firefox]\nprofile = "work"\n\n'
            "[pipeline.filter]\nmax_url_length = 4096\n\n"
            "[pipeline.transform]\ndeduplicate = true\n",
            encoding="utf-8",
        )

        config = ConfigurationManager(path).config

        assert config.sources["firefox"].profile == "work"
        assert config.pipeline.filter.max_url_length == 4096
        assert config.pipeline.transform.deduplicate

    def test_load_json(self, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"renderers": {"html": {"enabled": False}}}), encoding="utf-8")

        config = ConfigurationManager(path).config

        assert not config.renderers["html"].enabled
        assert config.renderers["json"].enabled

    def test_default_file_discovered(self, tmp_path):
        (tmp_path / "bookmark_aggregator.toml").write_text(
            '[logging]\nlevel = "WARNING"\n', encoding="utf-8"
        )

        manager = ConfigurationManager()

        assert manager.loaded_from.name == "bookmark_aggregator.toml"
        assert manager.config.logging.level == "WARNING"

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "c.toml"
        path.write_text('[logging]\nlevel = "WARNING"\n', encoding="utf-8")
        monkeypatch.setenv("BOOKMARK_AGGREGATOR_LOG_LEVEL", "debug")

        assert ConfigurationManager(path).config.logging.level == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigurationManager(tmp_path / "missing.toml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("a: 1", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Unsupported"):
            ConfigurationManager(path)

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[sources\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigurationManager(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"pipeline": {"filter": {"max_url_length": -5}}}), encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationManager(path)

        assert "max_url_length" in str(exc_info.value)

    def test_cli_overrides(self):
        manager = ConfigurationManager()

        manager.update_from_cli_args(
            {
                "exclude_folders": ["Archive"],
                "max_url_length": 100,
                "deduplicate": True,
                "include_dates": False,
                "style": "yaml",
                "import_path": "/tmp/b.html",
                "sort": None,
            }
        )

        config = manager.config
        assert config.pipeline.filter.exclude_folders == ["Archive"]
        assert config.pipeline.filter.max_url_length == 100
        assert config.pipeline.transform.deduplicate
        assert not config.pipeline.transform.sort
        assert not config.pipeline.render.include_dates
        assert config.renderers["markdown"].style == "yaml"
        assert config.sources["opml"].custom_path == "/tmp/b.html"

    @pytest.mark.parametrize("fmt,loader", [("toml", toml.load), ("json", json.load)])
    def test_sample_config_round_trips(self, tmp_path, fmt, loader):
        path = tmp_path / f"sample.{fmt}"

        ConfigurationManager.create_sample_config(path, fmt)

        with open(path, "r", encoding="utf-8") as f:
            data = loader(f)
        assert data["pipeline"]["filter"]["exclude_folders"] == ["Trash"]
        assert ConfigurationManager(path).config == AggregatorConfig()

    def test_sample_config_unknown_format(self, tmp_path):
        with pytest.raises(ValueError):
            ConfigurationManager.create_sample_config(tmp_path / "x.ini", "ini")


class TestFormatConfigError:
    """Test user-facing error formatting."""

    def test_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            FilterConfig(max_url_length=-1)

        message = format_config_error(exc_info.value)

        assert message.startswith("Configuration Validation Failed:")
        assert "max_url_length" in message
        assert "at least 0" in message

    def test_file_not_found(self):
        message = format_config_error(FileNotFoundError(2, "No such file", "x.toml"))

        assert "x.toml" in message

    def test_other_error(self):
        assert format_config_error(RuntimeError("odd")) == "Configuration error: odd"


class TestConfigurationFacade:
    """Test conversion into pipeline option objects."""

    def test_source_options(self):
        options = Configuration().source_options()

        assert options["chrome"].enabled
        assert not options["brave"].enabled
        assert options["chrome"].profile == ""

    def test_renderer_options_fold_style(self):
        options = Configuration().renderer_options()

        assert options["markdown"].options == {"style": "textual"}
        assert options["json"].options == {}

    def test_filter_rule(self):
        rule = Configuration().filter_rule()

        assert rule.exclude_schemes == ["data", "javascript"]
        assert rule.warn_url_length == 2048

    def test_render_options_group_only_for_all_sources(self):
        config = Configuration()

        assert not config.render_options().group_by_source
        assert config.render_options(all_sources=True).group_by_source
        assert config.render_options(style="table").style == "table"

    def test_update_from_args(self):
        config = Configuration()

        config.update_from_args({"log_level": "ERROR", "sort": True})

        assert config.log_level == "ERROR"
        assert config.sort
        assert not config.deduplicate

    def test_disabled_renderer(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text(json.dumps({"renderers": {"opml": {"enabled": False}}}), encoding="utf-8")

        config = Configuration(path)

        assert not config.is_renderer_enabled("opml")
        assert config.is_renderer_enabled("pdf")
