"""
Command Line Interface for Bookmark Aggregator

Subcommands:
    sync      Read bookmarks and render them (the default)
    serve     Run the MCP server over stdio
    adapters  List registered sources and renderers
    profiles  List the profiles each available source exposes
    config    Write a sample configuration file
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from . import __version__
from .config import Configuration, ConfigurationManager
from .core.filters import filter_summary
from .core.mcp import BookmarkMCPServer
from .core.pipeline import PipelineOrchestrator, PipelineRequest
from .core.registry import AdapterRegistry, get_registry
from .utils.error_handler import AggregatorError, InvalidFormatError
from .utils.logging_setup import setup_logging

MARKDOWN_STYLES = ("textual", "table", "yaml")

TOP_LEVEL_FLAGS = ("-h", "--help", "-V", "--version")


class CLIInterface:
    """Command line interface for the bookmark aggregator."""

    def __init__(
        self,
        registry: Optional[AdapterRegistry] = None,
        console: Optional[Console] = None,
    ):
        """
        Initialize the CLI.

        Args:
            registry: Registry to use instead of the global one
            console: Rich console for listings (defaults to stdout)
        """
        self._registry = registry
        self.console = console or Console()
        self.parser = self._create_parser()

    @property
    def registry(self) -> AdapterRegistry:
        if self._registry is None:
            self._registry = get_registry()
        return self._registry

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create and configure argument parser."""
        common = argparse.ArgumentParser(add_help=False)
        common.add_argument(
            "--config",
            "-c",
            type=str,
            help="Configuration file (TOML or JSON)",
        )
        common.add_argument(
            "--verbose", "-v", action="store_true", help="Enable debug logging"
        )
        common.add_argument(
            "--quiet", "-q", action="store_true", help="Only log warnings and errors"
        )
        common.add_argument("--log-file", type=str, help="Also write logs to this file")

        parser = argparse.ArgumentParser(
            prog="bookmark-aggregator",
            description="Collect browser bookmarks and render them as Markdown, JSON, YAML, OPML or HTML",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Render the default browser's bookmarks as Markdown
  bookmark-aggregator > bookmarks.md

  # Every browser and profile as JSON, without duplicates
  bookmark-aggregator sync --all --format json --dedupe -o bookmarks.json

  # One Firefox profile, only the "Work" folder, as an OPML outline
  bookmark-aggregator sync -b firefox -p default-release --include-folder Work -f opml

  # Convert an exported bookmark file to Markdown tables
  bookmark-aggregator sync --import bookmarks.html --style table

  # Serve bookmarks to an MCP client
  bookmark-aggregator serve

  # Inspect what is available
  bookmark-aggregator adapters
  bookmark-aggregator profiles -b chrome
            """,
        )
        parser.add_argument(
            "--version", "-V", action="version", version=f"%(prog)s {__version__}"
        )

        subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

        # Sync
        sync = subparsers.add_parser(
            "sync", parents=[common], help="Read bookmarks and render them"
        )
        sync.add_argument(
            "--all", "-a", action="store_true", help="Read every available source and profile"
        )
        sync.add_argument("--browser", "-b", type=str, help="Source to read (e.g. chrome)")
        sync.add_argument("--profile", "-p", type=str, help="Profile to read")
        sync.add_argument(
            "--format", "-f", type=str, default="markdown", help="Output format (default: markdown)"
        )
        sync.add_argument(
            "--style", choices=MARKDOWN_STYLES, help="Markdown style (default: textual)"
        )
        sync.add_argument("--output", "-o", type=str, help="Output file (default: stdout)")
        sync.add_argument(
            "--import",
            dest="import_path",
            type=str,
            help="Read an exported HTML or OPML bookmark file",
        )

        filters = sync.add_argument_group("filters")
        filters.add_argument(
            "--include-folder",
            dest="include_folders",
            action="append",
            metavar="TEXT",
            help="Keep only bookmarks whose folder path contains TEXT (repeatable)",
        )
        filters.add_argument(
            "--exclude-folder",
            dest="exclude_folders",
            action="append",
            metavar="TEXT",
            help="Drop bookmarks whose folder path contains TEXT (repeatable)",
        )
        filters.add_argument(
            "--exclude-pattern",
            dest="exclude_url_patterns",
            action="append",
            metavar="REGEX",
            help="Drop bookmarks whose URL matches REGEX (repeatable)",
        )
        filters.add_argument(
            "--exclude-scheme",
            dest="exclude_schemes",
            action="append",
            metavar="SCHEME",
            help="Drop URLs with this scheme (repeatable)",
        )
        filters.add_argument(
            "--warn-scheme",
            dest="warn_schemes",
            action="append",
            metavar="SCHEME",
            help="Warn about URLs with this scheme (repeatable)",
        )
        filters.add_argument(
            "--max-url-length", type=int, metavar="N", help="Drop URLs longer than N (0 disables)"
        )
        filters.add_argument(
            "--warn-url-length", type=int, metavar="N", help="Warn about URLs longer than N"
        )
        filters.add_argument(
            "--dedupe",
            dest="deduplicate",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Drop repeated URLs, keeping the first",
        )
        filters.add_argument(
            "--sort",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Sort bookmarks by title",
        )

        rendering = sync.add_argument_group("rendering")
        for flag, dest, text in (
            ("--metadata", "include_metadata", "the metadata header"),
            ("--dates", "include_dates", "date added"),
            ("--tags", "include_tags", "tags"),
            ("--profile-labels", "include_profile", "profile names"),
            ("--group", "group_by_source", "grouping by source and profile"),
        ):
            rendering.add_argument(
                flag,
                dest=dest,
                action=argparse.BooleanOptionalAction,
                default=None,
                help=f"Include {text}",
            )

        # Serve
        subparsers.add_parser(
            "serve", parents=[common], help="Serve bookmarks to MCP clients over stdio"
        )

        # Adapters
        subparsers.add_parser(
            "adapters", parents=[common], help="List registered sources and renderers"
        )

        # Profiles
        profiles = subparsers.add_parser(
            "profiles", parents=[common], help="List the profiles of available sources"
        )
        profiles.add_argument("--browser", "-b", type=str, help="Only list this source")

        # Config
        config = subparsers.add_parser(
            "config", parents=[common], help="Write a sample configuration file"
        )
        config.add_argument(
            "--sample", type=str, required=True, metavar="PATH", help="Where to write the sample"
        )
        config.add_argument(
            "--format",
            dest="config_format",
            choices=("toml", "json"),
            default="toml",
            help="Sample file format (default: toml)",
        )

        return parser

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        """
        Parse command line arguments.

        ``sync`` is assumed when no subcommand is given.
        """
        argv = list(sys.argv[1:] if args is None else args)
        if not argv or (argv[0].startswith("-") and argv[0] not in TOP_LEVEL_FLAGS):
            argv.insert(0, "sync")
        return self.parser.parse_args(argv)

    def load_configuration(self, args: argparse.Namespace) -> Configuration:
        """
        Load the configuration file and apply command-line overrides.

        Raises:
            ConfigurationError: If the configuration is missing or invalid
        """
        config = Configuration(Path(args.config) if args.config else None)

        overrides = {key: value for key, value in vars(args).items() if value is not None}
        if args.verbose:
            overrides["log_level"] = "DEBUG"
        elif args.quiet:
            overrides["log_level"] = "WARNING"
        config.update_from_args(overrides)
        return config

    def run(self, args: Optional[List[str]] = None) -> int:
        """Execute CLI interface."""
        parsed_args = self.parse_args(args)

        if parsed_args.command == "config":
            return self._handle_sample_config(parsed_args)

        try:
            config = self.load_configuration(parsed_args)
            setup_logging(config.log_level, config.log_file)

            logger = logging.getLogger(__name__)
            if config.loaded_from:
                logger.info(f"Loaded configuration from {config.loaded_from}")

            if parsed_args.command == "serve":
                return self._handle_serve(config)
            if parsed_args.command == "adapters":
                return self._handle_adapters(config)
            if parsed_args.command == "profiles":
                return self._handle_profiles(config, parsed_args.browser)
            return self._handle_sync(config, parsed_args)

        except AggregatorError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            print("Interrupted", file=sys.stderr)
            return 130

    # ------------------------------------------------------------------
    # Subcommands
    # ------------------------------------------------------------------

    def _orchestrator(self, config: Configuration) -> PipelineOrchestrator:
        return PipelineOrchestrator(
            self.registry, config.source_options(), config.renderer_options()
        )

    def _handle_sync(self, config: Configuration, args: argparse.Namespace) -> int:
        """Read, filter and render bookmarks to a file or stdout."""
        logger = logging.getLogger(__name__)

        renderer = args.format.lower()
        if not config.is_renderer_enabled(renderer):
            raise InvalidFormatError(f"output format disabled in configuration: {renderer}")

        source = args.browser
        if args.import_path and not source and not args.all:
            source = "opml"

        request = PipelineRequest(
            source=source,
            profile=args.profile,
            all_sources=args.all,
            renderer=renderer,
            filter_rule=config.filter_rule(),
            deduplicate=config.deduplicate,
            sort=config.sort,
            render_options=config.render_options(style=args.style or "", all_sources=args.all),
        )

        result = self._orchestrator(config).run(request)

        kept, excluded, warnings = filter_summary(result.outcome)
        logger.info(
            f"Filters kept {kept} bookmark(s), excluded {excluded}, raised {warnings} warning(s)"
        )

        if args.output:
            output_path = Path(args.output)
            output_path.write_bytes(result.output)
            logger.info(
                f"Wrote {len(result.collection)} bookmarks from "
                f"{result.source_count} source(s) to {output_path}"
            )
        else:
            self._write_stdout(result.output)
        return 0

    @staticmethod
    def _write_stdout(data: bytes) -> None:
        buffer = getattr(sys.stdout, "buffer", None)
        if buffer is None:
            sys.stdout.write(data.decode("utf-8"))
            sys.stdout.flush()
            return
        sys.stdout.flush()
        buffer.write(data)
        buffer.flush()

    def _handle_serve(self, config: Configuration) -> int:
        """Run the MCP server until stdin closes or a signal arrives."""
        logger = logging.getLogger(__name__)
        cancel = threading.Event()

        def _stop(signum, frame):
            logger.info(f"Received signal {signum}, shutting down")
            cancel.set()
            raise KeyboardInterrupt

        previous = signal.signal(signal.SIGTERM, _stop)
        server = BookmarkMCPServer(self._orchestrator(config), self.registry)
        try:
            server.run(cancel)
        except KeyboardInterrupt:
            cancel.set()
            logger.info("MCP server interrupted")
        finally:
            signal.signal(signal.SIGTERM, previous)
        return 0

    def _handle_adapters(self, config: Configuration) -> int:
        """Print registered sources and renderers."""
        statuses = self._orchestrator(config).describe_sources()

        sources = Table(title="Sources")
        sources.add_column("Name", style="cyan")
        sources.add_column("Display Name")
        sources.add_column("Available")
        sources.add_column("Enabled")
        sources.add_column("Path", overflow="fold")
        for status in statuses:
            sources.add_row(
                status.name,
                status.display_name,
                "yes" if status.available else "no",
                "yes" if status.enabled else "no",
                status.path or "-",
            )
        self.console.print(sources)

        renderers = Table(title="Renderers")
        renderers.add_column("Name", style="cyan")
        renderers.add_column("Display Name")
        renderers.add_column("Extensions")
        renderers.add_column("Enabled")
        for name in self.registry.list_renderer_names():
            renderer = self.registry.get_renderer(name)
            renderers.add_row(
                name,
                renderer.display_name,
                ", ".join(renderer.file_extensions),
                "yes" if config.is_renderer_enabled(name) else "no",
            )
        self.console.print(renderers)
        return 0

    def _handle_profiles(self, config: Configuration, browser: Optional[str]) -> int:
        """Print the profiles of every available source."""
        statuses = self._orchestrator(config).describe_sources()
        if browser:
            statuses = [s for s in statuses if s.name == browser.lower()]
            if not statuses:
                print(f"Error: unknown source: {browser}", file=sys.stderr)
                return 1

        table = Table(title="Profiles")
        table.add_column("Source", style="cyan")
        table.add_column("Profile")
        table.add_column("Default")
        table.add_column("Path", overflow="fold")
        for status in statuses:
            if not status.available:
                continue
            for profile in status.profiles:
                table.add_row(
                    status.name,
                    profile.name,
                    "*" if profile.is_default else "",
                    profile.path or "-",
                )
        self.console.print(table)
        return 0

    def _handle_sample_config(self, args: argparse.Namespace) -> int:
        """Write a configuration file holding the defaults."""
        output_path = Path(args.sample)
        if output_path.exists():
            print(f"Error: {output_path} already exists", file=sys.stderr)
            return 1

        try:
            ConfigurationManager.create_sample_config(output_path, args.config_format)
        except OSError as e:
            print(f"Error: cannot write {output_path}: {e}", file=sys.stderr)
            return 1

        print(f"Wrote sample configuration to {output_path}")
        return 0


def main(args=None):
    """Main entry point for the CLI."""
    cli = CLIInterface()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
