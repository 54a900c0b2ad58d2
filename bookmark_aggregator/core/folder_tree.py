"""
Folder tree built from flat bookmark records.

Renderers that emit nested output (Markdown lists, OPML outlines,
Netscape HTML) share this tree instead of regrouping records themselves.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Tuple

from .data_models import BookmarkRecord


@dataclass
class FolderNode:
    """
    One folder in the tree.

    ``children`` keeps first-seen order; ``bookmarks`` holds the records
    whose folder path ends at this node.
    """

    name: str = ""
    bookmarks: List[BookmarkRecord] = field(default_factory=list)
    children: Dict[str, "FolderNode"] = field(default_factory=dict)

    def child(self, name: str) -> "FolderNode":
        """Return the child folder ``name``, creating it if needed."""
        node = self.children.get(name)
        if node is None:
            node = FolderNode(name=name)
            self.children[name] = node
        return node

    def sorted_children(self, alpha: bool = False) -> List["FolderNode"]:
        """Children in insertion order, or case-insensitively by name."""
        nodes = list(self.children.values())
        if alpha:
            nodes.sort(key=lambda n: n.name.lower())
        return nodes

    def walk(self, depth: int = 0) -> Iterator[Tuple[int, "FolderNode"]]:
        """Yield (depth, node) pairs depth-first, starting with this node."""
        yield depth, self
        for node in self.children.values():
            yield from node.walk(depth + 1)

    def count(self) -> int:
        """Number of bookmarks in this folder and all sub-folders."""
        return len(self.bookmarks) + sum(c.count() for c in self.children.values())

    def is_empty(self) -> bool:
        return self.count() == 0


def build_folder_tree(records: Iterable[BookmarkRecord]) -> FolderNode:
    """
    Build a folder tree from records.

    Args:
        records: Records in the order they should appear

    Returns:
        Root node (unnamed); records with an empty folder path sit on it
    """
    root = FolderNode()
    for record in records:
        node = root
        for part in record.folder_path:
            node = node.child(part)
        node.bookmarks.append(record)
    return root
