"""
Netscape bookmark file renderer.

Produces the ``NETSCAPE-Bookmark-file-1`` HTML format that every major
browser can import.
"""

from html import escape
from typing import List

from ..data_models import BookmarkRecord, Collection, RenderOptions
from ..folder_tree import FolderNode, build_folder_tree
from .base import BaseRenderer, group_by_source_profile, sorted_records

HEADER = [
    "<!DOCTYPE NETSCAPE-Bookmark-file-1>",
    "<!-- This is an automatically generated file.",
    "     It will be read and overwritten.",
    "     DO NOT EDIT! -->",
    '<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">',
    "<TITLE>Bookmarks</TITLE>",
    "<H1>Bookmarks</H1>",
]


class NetscapeHTMLRenderer(BaseRenderer):
    """Render bookmarks to a Netscape bookmark HTML file."""

    name = "html"
    display_name = "Netscape Bookmark HTML"
    file_extensions = [".html", ".htm"]

    def render(self, collection: Collection, options: RenderOptions) -> bytes:
        lines: List[str] = list(HEADER)
        lines.append("<DL><p>")

        records = sorted_records(collection.bookmarks, options.sort_alpha)
        if options.group_by_source:
            for (source, profile), group in group_by_source_profile(records).items():
                label = source.title() if source else "Bookmarks"
                if options.include_profile and profile:
                    label += f" / {profile}"
                lines.append(f"    <DT><H3>{escape(label)}</H3>")
                lines.append("    <DL><p>")
                self._render_folder(build_folder_tree(group), 2, options, lines)
                lines.append("    </DL><p>")
        else:
            self._render_folder(build_folder_tree(records), 1, options, lines)

        lines.append("</DL><p>")
        return ("\n".join(lines) + "\n").encode("utf-8")

    def _render_folder(
        self, node: FolderNode, depth: int, options: RenderOptions, lines: List[str]
    ) -> None:
        pad = "    " * depth
        for record in node.bookmarks:
            lines.append(pad + self._bookmark_line(record, options))
        for child in node.sorted_children(options.sort_alpha):
            lines.append(f"{pad}<DT><H3>{escape(child.name)}</H3>")
            lines.append(f"{pad}<DL><p>")
            self._render_folder(child, depth + 1, options, lines)
            lines.append(f"{pad}</DL><p>")

    @staticmethod
    def _bookmark_line(record: BookmarkRecord, options: RenderOptions) -> str:
        attrs = [f'HREF="{escape(record.url, quote=True)}"']
        if options.include_dates and record.date_added is not None:
            attrs.append(f'ADD_DATE="{int(record.date_added.timestamp())}"')
        if options.include_tags and record.tags:
            attrs.append(f'TAGS="{escape(",".join(record.tags), quote=True)}"')
        title = escape(record.get_effective_title())
        return f"<DT><A {' '.join(attrs)}>{title}</A>"
