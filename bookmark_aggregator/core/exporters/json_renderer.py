"""
JSON bookmark renderer.

Renders a collection as a JSON document with an optional metadata block
followed by the flat list of bookmarks.
"""

import json
from typing import Any, Dict, List

from ...utils.error_handler import ConfigInvalidError, RenderError
from ..data_models import BookmarkRecord, Collection, RenderOptions
from .base import BaseRenderer, generated_at, platform_name, sorted_records


class JSONRenderer(BaseRenderer):
    """
    Render bookmarks to JSON.

    Options:
        indent: Indentation width (default 2; 0 for compact output)
        ensure_ascii: Escape non-ASCII characters (default False)

    Example:
        >>> renderer = JSONRenderer()
        >>> data = json.loads(renderer.render(collection, RenderOptions.default()))
        >>> data["metadata"]["total"]
    """

    name = "json"
    display_name = "JSON"
    file_extensions = [".json"]

    def validate_options(self) -> None:
        indent = self.options.get("indent", 2)
        if not isinstance(indent, int) or isinstance(indent, bool) or indent < 0:
            raise ConfigInvalidError(
                f"indent must be a non-negative integer, got {indent!r}", source_name=self.name
            )

    def render(self, collection: Collection, options: RenderOptions) -> bytes:
        document = self.build_document(collection, options)
        indent = self.options.get("indent", 2) or None
        try:
            text = json.dumps(
                document,
                indent=indent,
                ensure_ascii=bool(self.options.get("ensure_ascii", False)),
            )
        except (TypeError, ValueError) as e:
            raise RenderError("cannot encode bookmarks as JSON", source_name=self.name, original_error=e)
        return (text + "\n").encode("utf-8")

    def build_document(self, collection: Collection, options: RenderOptions) -> Dict[str, Any]:
        """Build the JSON-serializable document."""
        document: Dict[str, Any] = {}

        if options.include_metadata:
            document["metadata"] = {
                "generated": generated_at().isoformat(),
                "platform": platform_name(),
                "total": len(collection),
                "sources": [
                    {
                        "name": d.name,
                        "profile": d.profile,
                        "path": d.path,
                        "count": d.count,
                    }
                    for d in collection.sources
                ],
            }

        records = sorted_records(collection.bookmarks, options.sort_alpha)
        document["bookmarks"] = [self._record_to_dict(r, options) for r in records]
        return document

    @staticmethod
    def _record_to_dict(record: BookmarkRecord, options: RenderOptions) -> Dict[str, Any]:
        item: Dict[str, Any] = {"title": record.title, "url": record.url}
        if record.folder_path:
            item["folder"] = record.get_folder_path()
        if options.include_dates and record.date_added is not None:
            item["date_added"] = record.date_added.isoformat()
        if options.include_tags and record.tags:
            item["tags"] = list(record.tags)
        item["source"] = record.source_name
        if options.include_profile and record.profile:
            item["profile"] = record.profile
        return item


def bookmarks_to_list(records: List[BookmarkRecord]) -> List[Dict[str, str]]:
    """Minimal ``{title, url}`` list used for search results."""
    return [{"title": r.title, "url": r.url} for r in records]
