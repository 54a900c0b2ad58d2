"""
OPML bookmark renderer.

Renders the folder tree as an OPML 2.0 outline. Folders become outline
nodes with children; bookmarks become ``type="link"`` outlines.
"""

import xml.etree.ElementTree as ET
from email.utils import format_datetime
from typing import List
from xml.dom import minidom

from ..data_models import BookmarkRecord, Collection, RenderOptions
from ..folder_tree import FolderNode, build_folder_tree
from .base import BaseRenderer, generated_at, group_by_source_profile, sorted_records


class OPMLRenderer(BaseRenderer):
    """
    Render bookmarks to OPML.

    Options:
        title: Document title (default "Browser Bookmarks")
        pretty_print: Indent the XML (default True)
    """

    name = "opml"
    display_name = "OPML"
    file_extensions = [".opml", ".xml"]

    def render(self, collection: Collection, options: RenderOptions) -> bytes:
        opml = ET.Element("opml", version="2.0")

        head = ET.SubElement(opml, "head")
        ET.SubElement(head, "title").text = self.options.get("title", "Browser Bookmarks")
        if options.include_metadata:
            ET.SubElement(head, "dateCreated").text = format_datetime(generated_at())

        body = ET.SubElement(opml, "body")
        records = sorted_records(collection.bookmarks, options.sort_alpha)

        if options.group_by_source:
            for (source, profile), group in group_by_source_profile(records).items():
                label = source.title() if source else "Bookmarks"
                if options.include_profile and profile:
                    label += f" / {profile}"
                group_outline = ET.SubElement(body, "outline", text=label, title=label)
                self._add_folder(group_outline, build_folder_tree(group), options)
        else:
            self._add_folder(body, build_folder_tree(records), options)

        return self._to_xml_bytes(opml)

    def _add_folder(self, parent: ET.Element, node: FolderNode, options: RenderOptions) -> None:
        for record in node.bookmarks:
            self._add_bookmark(parent, record, options)
        for child in node.sorted_children(options.sort_alpha):
            outline = ET.SubElement(parent, "outline", text=child.name, title=child.name)
            self._add_folder(outline, child, options)

    @staticmethod
    def _add_bookmark(parent: ET.Element, record: BookmarkRecord, options: RenderOptions) -> None:
        title = record.get_effective_title()
        attribs = {"text": title, "title": title, "type": "link", "htmlUrl": record.url}
        if options.include_dates and record.date_added is not None:
            attribs["created"] = format_datetime(record.date_added)
        if options.include_tags and record.tags:
            attribs["category"] = ",".join(record.tags)
        ET.SubElement(parent, "outline", **attribs)

    def _to_xml_bytes(self, element: ET.Element) -> bytes:
        rough = ET.tostring(element, encoding="unicode", method="xml")
        if not self.options.get("pretty_print", True):
            return ('<?xml version="1.0" encoding="UTF-8"?>\n' + rough + "\n").encode("utf-8")

        dom = minidom.parseString(rough)  # nosec B318 - parsing self-generated XML
        pretty = dom.toprettyxml(indent="  ", encoding="UTF-8")
        lines: List[bytes] = [line for line in pretty.splitlines() if line.strip()]
        return b"\n".join(lines) + b"\n"
