"""
Configuration facade used by the CLI.

Wraps the Pydantic configuration and converts it into the option objects
the pipeline consumes.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from ..core.data_models import FilterRule, RendererOptions, RenderOptions, SourceOptions
from .pydantic_config import AggregatorConfig, ConfigurationManager


class Configuration:
    """
    Configuration manager wrapping the Pydantic-based system.

    Example:
        >>> config = Configuration(Path("bookmark_aggregator.toml"))
        >>> orchestrator = PipelineOrchestrator(
        ...     registry, config.source_options(), config.renderer_options()
        ... )
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to user configuration file (TOML/JSON)
        """
        self._manager = ConfigurationManager(config_path)
        self._config = self._manager.config

    @property
    def config(self) -> AggregatorConfig:
        """Get the underlying Pydantic configuration."""
        return self._config

    @property
    def loaded_from(self) -> Optional[Path]:
        return self._manager.loaded_from

    def update_from_args(self, args: Dict[str, Any]) -> None:
        """
        Update configuration from command-line arguments.

        Args:
            args: Dictionary of overrides (see ConfigurationManager.update_from_cli_args)
        """
        self._manager.update_from_cli_args(args)
        self._config = self._manager.config

    def source_options(self) -> Dict[str, SourceOptions]:
        """Per-source options keyed by source name."""
        return {
            name: SourceOptions(
                enabled=cfg.enabled,
                profile=cfg.profile,
                custom_path=cfg.custom_path,
                options=dict(cfg.options),
            )
            for name, cfg in self._config.sources.items()
        }

    def renderer_options(self) -> Dict[str, RendererOptions]:
        """Per-renderer options keyed by renderer name; ``style`` is folded into options."""
        result = {}
        for name, cfg in self._config.renderers.items():
            options = dict(cfg.options)
            if cfg.style:
                options["style"] = cfg.style
            result[name] = RendererOptions(enabled=cfg.enabled, options=options)
        return result

    def filter_rule(self) -> FilterRule:
        f = self._config.pipeline.filter
        return FilterRule(
            include_folders=list(f.include_folders),
            exclude_folders=list(f.exclude_folders),
            exclude_url_patterns=list(f.exclude_url_patterns),
            exclude_schemes=list(f.exclude_schemes),
            warn_schemes=list(f.warn_schemes),
            max_url_length=f.max_url_length,
            warn_url_length=f.warn_url_length,
        )

    def render_options(self, style: str = "", all_sources: bool = False) -> RenderOptions:
        """
        Build render options from the configured defaults.

        Grouping by source only applies when several sources are read.
        """
        r = self._config.pipeline.render
        return RenderOptions(
            include_metadata=r.include_metadata,
            include_dates=r.include_dates,
            include_tags=r.include_tags,
            include_profile=r.include_profile,
            group_by_source=r.group_by_source and all_sources,
            sort_alpha=r.sort_alpha,
            style=style,
        )

    @property
    def deduplicate(self) -> bool:
        return self._config.pipeline.transform.deduplicate

    @property
    def sort(self) -> bool:
        return self._config.pipeline.transform.sort

    @property
    def log_level(self) -> str:
        return self._config.logging.level

    @property
    def log_file(self) -> Optional[str]:
        return self._config.logging.log_file

    def is_renderer_enabled(self, name: str) -> bool:
        return self._config.get_renderer_config(name).enabled
