"""
Markdown bookmark renderer.

Three styles are supported:
    textual: nested lists following the folder tree (default)
    table:   one Markdown table per group
    yaml:    a fenced YAML block listing every bookmark
"""

from typing import List

import yaml

from ...utils.error_handler import ConfigInvalidError
from ..data_models import BookmarkRecord, Collection, RenderOptions
from ..folder_tree import FolderNode, build_folder_tree
from .base import (
    BaseRenderer,
    format_sources,
    generated_at,
    group_by_source_profile,
    platform_name,
    sorted_records,
)

STYLE_TEXTUAL = "textual"
STYLE_TABLE = "table"
STYLE_YAML = "yaml"
STYLES = (STYLE_TEXTUAL, STYLE_TABLE, STYLE_YAML)

DOCUMENT_TITLE = "# Browser Bookmarks"

YAML_SPECIAL = set(":#[]{}|>&*!?,\\\"'\n")

# Characters that cannot start a plain scalar
YAML_INDICATORS = "-?:,[]{}#&*!|>'\"%@`"


def escape_link_text(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def escape_table_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def is_plain_scalar(text: str) -> bool:
    """Return True when ``text`` loads back unchanged as an unquoted YAML string."""
    if not text or YAML_SPECIAL.intersection(text):
        return False
    if text[0] in YAML_INDICATORS or text[0].isspace() or text[-1].isspace():
        return False
    # Reserved words and number-like text resolve to other types
    try:
        return yaml.safe_load(text) == text
    except yaml.YAMLError:
        return False


def yaml_scalar(text: str) -> str:
    """Quote ``text`` when it would not survive as a plain YAML scalar."""
    if not is_plain_scalar(text):
        escaped = (
            text.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("\n", "\\n")
            .replace("\r", "\\r")
        )
        return f'"{escaped}"'
    return text


class MarkdownRenderer(BaseRenderer):
    """
    Render bookmarks to Markdown.

    The style comes from the render options, then the configured
    ``style`` option, then defaults to ``textual``.
    """

    name = "markdown"
    display_name = "Markdown"
    file_extensions = [".md", ".markdown"]

    def validate_options(self) -> None:
        style = self.options.get("style", STYLE_TEXTUAL)
        if style not in STYLES:
            raise ConfigInvalidError(
                f"unknown markdown style {style!r} (expected one of {', '.join(STYLES)})",
                source_name=self.name,
            )

    def resolve_style(self, options: RenderOptions) -> str:
        style = options.style or self.options.get("style") or STYLE_TEXTUAL
        if style not in STYLES:
            self.logger.warning(f"Unknown markdown style {style!r}, using {STYLE_TEXTUAL}")
            return STYLE_TEXTUAL
        return style

    def render(self, collection: Collection, options: RenderOptions) -> bytes:
        style = self.resolve_style(options)
        lines = self._header(collection, options)

        if style == STYLE_TABLE:
            lines.extend(self._render_table(collection, options))
        elif style == STYLE_YAML:
            lines.extend(self._render_yaml(collection, options))
        else:
            lines.extend(self._render_textual(collection, options))

        return "\n".join(lines).rstrip("\n").encode("utf-8") + b"\n"

    def _header(self, collection: Collection, options: RenderOptions) -> List[str]:
        lines = [DOCUMENT_TITLE, ""]
        if options.include_metadata:
            lines.extend(
                [
                    f"*Generated: {generated_at().strftime('%Y-%m-%d %H:%M:%S')} UTC*",
                    f"*Platform: {platform_name()}*",
                    f"*Source: {format_sources(collection, options.include_profile)}*",
                    f"*Total bookmarks: {len(collection)}*",
                    "",
                ]
            )
        return lines

    @staticmethod
    def _group_heading(record: BookmarkRecord, options: RenderOptions) -> str:
        heading = record.source_name.title() if record.source_name else "Bookmarks"
        if options.include_profile and record.profile:
            heading += f" / {record.profile}"
        return f"## {heading}"

    # ------------------------------------------------------------------
    # textual
    # ------------------------------------------------------------------

    def _render_textual(self, collection: Collection, options: RenderOptions) -> List[str]:
        records = sorted_records(collection.bookmarks, options.sort_alpha)
        lines: List[str] = []
        if options.group_by_source:
            for group in group_by_source_profile(records).values():
                lines.append(self._group_heading(group[0], options))
                lines.append("")
                self._render_folder(build_folder_tree(group), 0, options, lines)
                lines.append("")
        else:
            self._render_folder(build_folder_tree(records), 0, options, lines)
        return lines

    def _render_folder(
        self, node: FolderNode, indent: int, options: RenderOptions, lines: List[str]
    ) -> None:
        if node.name:
            lines.append(f"{'  ' * indent}- **{node.name}**")
            indent += 1

        for record in node.bookmarks:
            lines.append(self._bookmark_line(record, indent, options))

        for child in node.sorted_children(options.sort_alpha):
            self._render_folder(child, indent, options, lines)

    @staticmethod
    def _bookmark_line(record: BookmarkRecord, indent: int, options: RenderOptions) -> str:
        title = escape_link_text(record.get_effective_title())
        line = f"{'  ' * indent}- [{title}]({record.url})"

        meta = []
        if options.include_dates and record.date_added is not None:
            meta.append(record.date_added.strftime("%Y-%m-%d"))
        if options.include_tags:
            meta.extend(f"#{tag}" for tag in record.tags)
        if meta:
            line += f" *({', '.join(meta)})*"
        return line

    # ------------------------------------------------------------------
    # table
    # ------------------------------------------------------------------

    def _render_table(self, collection: Collection, options: RenderOptions) -> List[str]:
        records = sorted_records(collection.bookmarks, options.sort_alpha)
        lines: List[str] = []
        if options.group_by_source:
            for group in group_by_source_profile(records).values():
                lines.append(self._group_heading(group[0], options))
                lines.append("")
                lines.extend(self._table_section(group, options))
                lines.append("")
        else:
            lines.extend(self._table_section(records, options))
        return lines

    @staticmethod
    def _table_section(records: List[BookmarkRecord], options: RenderOptions) -> List[str]:
        headers = ["Title", "Folder"]
        if options.include_dates:
            headers.append("Date")
        if options.include_tags:
            headers.append("Tags")

        lines = [
            "| " + " | ".join(headers) + " |",
            "|" + "---|" * len(headers),
        ]
        for record in records:
            title = escape_table_cell(escape_link_text(record.get_effective_title()))
            row = [f"[{title}]({record.url})", escape_table_cell(record.get_folder_path())]
            if options.include_dates:
                row.append(record.date_added.strftime("%Y-%m-%d") if record.date_added else "")
            if options.include_tags:
                row.append(" ".join(f"#{tag}" for tag in record.tags))
            lines.append("| " + " | ".join(row) + " |")
        return lines

    # ------------------------------------------------------------------
    # yaml
    # ------------------------------------------------------------------

    def _render_yaml(self, collection: Collection, options: RenderOptions) -> List[str]:
        lines = ["```yaml", "bookmarks:"]
        for record in sorted_records(collection.bookmarks, options.sort_alpha):
            lines.append(f"  - title: {yaml_scalar(record.title)}")
            lines.append(f"    url: {yaml_scalar(record.url)}")
            if record.folder_path:
                lines.append(f"    folder: {yaml_scalar(record.get_folder_path())}")
            if options.include_dates and record.date_added is not None:
                lines.append(f"    date: {record.date_added.strftime('%Y-%m-%d')}")
            if options.include_tags and record.tags:
                tags = ", ".join(yaml_scalar(t) for t in record.tags)
                lines.append(f"    tags: [{tags}]")
            if options.include_profile:
                lines.append(f"    source: {yaml_scalar(record.source_name)}")
                if record.profile:
                    lines.append(f"    profile: {yaml_scalar(record.profile)}")
        lines.append("```")
        return lines
