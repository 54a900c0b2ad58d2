"""
Pydantic-based configuration system for Bookmark Aggregator.

Configuration is read from a TOML or JSON file. Every section is
optional; missing values fall back to the defaults defined here.

Example (TOML):

    [sources.chrome]
    enabled = true
    profile = "Profile 1"

    [sources.opml]
    custom_path = "~/exports/bookmarks.html"

    [renderers.markdown]
    style = "table"

    [pipeline.filter]
    exclude_folders = ["Trash", "Archive"]
    max_url_length = 4096
"""

import json
import os
import re
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..utils.error_handler import ConfigurationError

ENV_LOG_LEVEL = "BOOKMARK_AGGREGATOR_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SourceConfig(BaseModel):
    """Settings for one bookmark source."""

    enabled: bool = Field(default=True, description="Read this source")
    profile: str = Field(
        default="",
        description="Profile to read in single-source mode (empty: source default)",
    )
    custom_path: str = Field(
        default="",
        description="Explicit bookmark file or database to read instead of discovery",
    )
    options: Dict[str, Any] = Field(
        default_factory=dict,
        description="Source-specific options, including opaque credentials",
    )

    @field_validator("custom_path", mode="before")
    @classmethod
    def expand_custom_path(cls, v):
        """Expand ``~`` in custom paths."""
        if isinstance(v, str) and v:
            return os.path.expanduser(v)
        return v


class RendererConfig(BaseModel):
    """Settings for one renderer."""

    enabled: bool = Field(default=True, description="Allow this output format")
    style: str = Field(default="", description="Renderer style (markdown: textual, table, yaml)")
    options: Dict[str, Any] = Field(default_factory=dict, description="Renderer-specific options")


class FilterConfig(BaseModel):
    """Filter rules applied to every pipeline run."""

    include_folders: List[str] = Field(
        default_factory=list,
        description="Keep only bookmarks whose folder path contains one of these",
    )
    exclude_folders: List[str] = Field(
        default_factory=lambda: ["Trash"],
        description="Drop bookmarks whose folder path contains one of these",
    )
    exclude_url_patterns: List[str] = Field(
        default_factory=list,
        description="Drop bookmarks whose URL matches one of these regular expressions",
    )
    exclude_schemes: List[str] = Field(
        default_factory=lambda: ["data", "javascript"],
        description="Drop bookmarks using these URL schemes",
    )
    warn_schemes: List[str] = Field(
        default_factory=lambda: ["file", "chrome", "about", "blob"],
        description="Warn about bookmarks using these URL schemes",
    )
    max_url_length: int = Field(
        default=0,
        ge=0,
        description="Drop bookmarks with longer URLs (0: no limit)",
        json_schema_extra={"error_msg": "max_url_length must be 0 (unbounded) or positive."},
    )
    warn_url_length: int = Field(
        default=2048,
        ge=0,
        description="Warn about bookmarks with longer URLs (0: never)",
    )

    @field_validator("exclude_url_patterns")
    @classmethod
    def warn_invalid_patterns(cls, v):
        """Invalid patterns are kept but will be ignored by the filter engine."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                warnings.warn(
                    f"Exclude pattern {pattern!r} is not a valid regular expression "
                    f"({e}) and will be ignored.",
                    UserWarning,
                )
        return v

    @field_validator("exclude_schemes", "warn_schemes")
    @classmethod
    def normalize_schemes(cls, v):
        return [s.lower().rstrip(":") for s in v if s]


class TransformConfig(BaseModel):
    """Transformations applied after filtering."""

    deduplicate: bool = Field(default=False, description="Drop repeated URLs (first wins)")
    sort: bool = Field(default=False, description="Sort bookmarks by title")


class RenderConfig(BaseModel):
    """Default render switches."""

    include_metadata: bool = True
    include_dates: bool = True
    include_tags: bool = True
    include_profile: bool = True
    group_by_source: bool = True
    sort_alpha: bool = False


class PipelineConfig(BaseModel):
    """Filter, transform and render settings."""

    filter: FilterConfig = Field(default_factory=FilterConfig)
    transform: TransformConfig = Field(default_factory=TransformConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", description="Log level")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("level", mode="before")
    @classmethod
    def validate_level(cls, v):
        level = str(v).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return level


def default_sources() -> Dict[str, SourceConfig]:
    return {
        "chrome": SourceConfig(enabled=True),
        "edge": SourceConfig(enabled=True),
        "firefox": SourceConfig(enabled=True),
        "safari": SourceConfig(enabled=True),
        "chromium": SourceConfig(enabled=False),
        "brave": SourceConfig(enabled=False),
        "opml": SourceConfig(enabled=True),
    }


def default_renderers() -> Dict[str, RendererConfig]:
    return {
        "markdown": RendererConfig(style="textual"),
        "json": RendererConfig(),
        "yaml": RendererConfig(),
        "opml": RendererConfig(),
        "html": RendererConfig(),
    }


class AggregatorConfig(BaseModel):
    """Complete Bookmark Aggregator configuration."""

    sources: Dict[str, SourceConfig] = Field(default_factory=default_sources)
    renderers: Dict[str, RendererConfig] = Field(default_factory=default_renderers)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="before")
    @classmethod
    def merge_adapter_defaults(cls, data):
        """User ``sources`` and ``renderers`` tables extend the defaults."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key, defaults in (("sources", default_sources), ("renderers", default_renderers)):
            user = data.get(key)
            if user is None:
                continue
            if not isinstance(user, dict):
                # Let field validation report the type error
                continue
            merged: Dict[str, Any] = {n: c.model_dump() for n, c in defaults().items()}
            for name, settings in user.items():
                base = merged.get(name.lower(), {})
                if isinstance(settings, dict):
                    merged[name.lower()] = {**base, **settings}
                else:
                    merged[name.lower()] = settings
            data[key] = merged
        return data

    def get_source_config(self, name: str) -> SourceConfig:
        """Settings for ``name``; unknown sources are enabled with defaults."""
        return self.sources.get(name.lower(), SourceConfig())

    def get_renderer_config(self, name: str) -> RendererConfig:
        return self.renderers.get(name.lower(), RendererConfig())


class ConfigurationManager:
    """Manages loading and validation of configuration from files and the environment."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file (TOML or JSON)

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        self._config: Optional[AggregatorConfig] = None
        self.loaded_from: Optional[Path] = None
        self._load_configuration(Path(config_path) if config_path else None)

    @staticmethod
    def get_default_config_paths() -> List[Path]:
        """Configuration files tried, in order, when no path is given."""
        return [
            Path.cwd() / "bookmark_aggregator.toml",
            Path.cwd() / "bookmark_aggregator.json",
            Path.home() / ".config" / "bookmark-aggregator" / "config.toml",
        ]

    def _load_configuration(self, config_path: Optional[Path]) -> None:
        config_data: Dict[str, Any] = {}

        if config_path:
            config_data = self._load_config_file(config_path)
            self.loaded_from = config_path
        else:
            for path in self.get_default_config_paths():
                if path.is_file():
                    config_data = self._load_config_file(path)
                    self.loaded_from = path
                    break

        self._apply_environment(config_data)

        try:
            self._config = AggregatorConfig(**config_data)
        except (ValidationError, TypeError, ValueError) as e:
            raise ConfigurationError(format_config_error(e), original_error=e)

    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:
        """Load configuration from TOML or JSON file."""
        if not config_path.exists():
            raise ConfigurationError(
                format_config_error(FileNotFoundError(2, "No such file", str(config_path)))
            )

        suffix = config_path.suffix.lower()
        try:
            if suffix == ".toml":
                return toml.load(str(config_path))
            if suffix == ".json":
                with open(config_path, "r", encoding="utf-8") as f:
                    return json.load(f)
        except (OSError, ValueError, toml.TomlDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load configuration from {config_path}", original_error=e
            )
        raise ConfigurationError(f"Unsupported configuration file format: {suffix}")

    @staticmethod
    def _apply_environment(config_data: Dict[str, Any]) -> None:
        """Environment variables override file values."""
        level = os.getenv(ENV_LOG_LEVEL)
        if level:
            section = config_data.setdefault("logging", {})
            if isinstance(section, dict):
                section["level"] = level

    def update_from_cli_args(self, args: Dict[str, Any]) -> None:
        """
        Apply command-line overrides.

        Recognized keys (None values are ignored): ``exclude_schemes``,
        ``warn_schemes``, ``include_folders``, ``exclude_folders``,
        ``exclude_url_patterns``, ``max_url_length``, ``warn_url_length``,
        ``deduplicate``, ``sort``, ``include_metadata``, ``include_dates``,
        ``include_tags``, ``include_profile``, ``group_by_source``,
        ``style``, ``log_level``, ``log_file``, ``import_path``.
        """
        config_dict = self.config.model_dump()
        pipeline = config_dict["pipeline"]

        for key in (
            "exclude_schemes",
            "warn_schemes",
            "include_folders",
            "exclude_folders",
            "exclude_url_patterns",
            "max_url_length",
            "warn_url_length",
        ):
            if args.get(key) is not None:
                pipeline["filter"][key] = args[key]

        for key in ("deduplicate", "sort"):
            if args.get(key) is not None:
                pipeline["transform"][key] = args[key]

        for key in (
            "include_metadata",
            "include_dates",
            "include_tags",
            "include_profile",
            "group_by_source",
        ):
            if args.get(key) is not None:
                pipeline["render"][key] = args[key]

        if args.get("style"):
            config_dict["renderers"].setdefault("markdown", {})["style"] = args["style"]
        if args.get("log_level"):
            config_dict["logging"]["level"] = args["log_level"]
        if args.get("log_file"):
            config_dict["logging"]["log_file"] = args["log_file"]
        if args.get("import_path"):
            config_dict["sources"].setdefault("opml", {})["custom_path"] = args["import_path"]

        try:
            self._config = AggregatorConfig(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(format_config_error(e), original_error=e)

    @property
    def config(self) -> AggregatorConfig:
        """Get the current configuration."""
        if not self._config:
            raise RuntimeError("Configuration not loaded")
        return self._config

    @staticmethod
    def create_sample_config(output_path: Path, format: str = "toml") -> None:
        """Write a sample configuration file holding the defaults."""
        sample = AggregatorConfig().model_dump(exclude_none=True)

        if format.lower() == "toml":
            with open(output_path, "w", encoding="utf-8") as f:
                toml.dump(sample, f)
        elif format.lower() == "json":
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(sample, f, indent=2)
        else:
            raise ValueError(f"Unsupported format: {format}")


class ConfigurationErrorFormatter:
    """Formats Pydantic validation errors into user-friendly messages."""

    @staticmethod
    def format_validation_error(error: ValidationError) -> str:
        """
        Convert a Pydantic ValidationError into a readable message.

        Args:
            error: Pydantic ValidationError instance

        Returns:
            One line per problem under a short header
        """
        lines = []
        for detail in error.errors():
            location = ConfigurationErrorFormatter._format_error_location(detail["loc"])
            lines.append(
                ConfigurationErrorFormatter._format_by_error_type(
                    location, detail["type"], detail, detail.get("input", "N/A")
                )
            )

        header = "Configuration Validation Failed:\n"
        footer = (
            "\n\n💡 Tips:\n"
            "• Check the configuration file format (TOML or JSON)\n"
            "• Ensure numeric values are not negative\n"
            "• Use 'bookmark-aggregator config --sample' to generate a sample file"
        )
        return header + "\n".join(lines) + footer

    @staticmethod
    def _format_error_location(location: tuple) -> str:
        if not location:
            return "Configuration"
        return " → ".join(str(part) if isinstance(part, str) else f"[{part}]" for part in location)

    @staticmethod
    def _format_by_error_type(location: str, error_type: str, detail: dict, input_value) -> str:
        if error_type == "missing":
            return f"❌ {location}: Required field is missing"

        if error_type in ("greater_than_equal", "greater_than"):
            limit = detail.get("ctx", {}).get("ge", detail.get("ctx", {}).get("gt", "limit"))
            return f"❌ {location}: Value must be at least {limit} (got: {input_value})"

        if error_type.endswith("_type") or error_type.endswith("_parsing"):
            return (
                f"❌ {location}: {detail.get('msg', 'Wrong type')} "
                f"(got: {type(input_value).__name__})"
            )

        msg = detail.get("msg", "Invalid configuration value")
        return f"❌ {location}: {msg} (got: {input_value})"


def format_config_error(error: Exception) -> str:
    """
    Format any configuration-related error into a user-friendly message.

    Args:
        error: Exception that occurred during configuration

    Returns:
        Formatted error message
    """
    if isinstance(error, ValidationError):
        return ConfigurationErrorFormatter.format_validation_error(error)

    if isinstance(error, FileNotFoundError):
        return (
            f"Configuration file not found: {error.filename}\n"
            "💡 Omit --config to use the defaults, or check the path."
        )

    return f"Configuration error: {error}"
