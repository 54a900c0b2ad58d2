"""
YAML bookmark renderer.

Renders the same metadata and bookmarks document as the JSON renderer,
serialized as block-style YAML.
"""

import yaml

from ...utils.error_handler import ConfigInvalidError, RenderError
from ..data_models import Collection, RenderOptions
from .json_renderer import JSONRenderer


class YAMLRenderer(JSONRenderer):
    """
    Render bookmarks to YAML.

    Options:
        indent: Indentation width between 2 and 9 (default 2)

    Example:
        >>> renderer = YAMLRenderer()
        >>> data = yaml.safe_load(renderer.render(collection, RenderOptions.default()))
        >>> data["bookmarks"][0]["url"]
    """

    name = "yaml"
    display_name = "YAML"
    file_extensions = [".yaml", ".yml"]

    def validate_options(self) -> None:
        indent = self.options.get("indent", 2)
        if not isinstance(indent, int) or isinstance(indent, bool) or not 2 <= indent <= 9:
            raise ConfigInvalidError(
                f"indent must be an integer between 2 and 9, got {indent!r}",
                source_name=self.name,
            )

    def render(self, collection: Collection, options: RenderOptions) -> bytes:
        document = self.build_document(collection, options)
        try:
            text = yaml.safe_dump(
                document,
                indent=self.options.get("indent", 2),
                allow_unicode=True,
                sort_keys=False,
                default_flow_style=False,
            )
        except yaml.YAMLError as e:
            raise RenderError("cannot encode bookmarks as YAML", source_name=self.name, original_error=e)
        return text.encode("utf-8")
