"""
Unit tests for the shared folder tree.
"""

from bookmark_aggregator.core.folder_tree import build_folder_tree
from tests.fixtures.fake_adapters import make_record


class TestBuildFolderTree:
    """Test tree construction from flat records."""

    def test_root_records(self):
        root = build_folder_tree([make_record("https://a")])

        assert root.name == ""
        assert [r.url for r in root.bookmarks] == ["https://a"]
        assert root.children == {}

    def test_nested_folders(self, sample_records):
        root = build_folder_tree(sample_records)

        bar = root.children["Bookmarks bar"]
        dev = bar.children["Dev"]
        assert [r.url for r in bar.bookmarks] == ["javascript:alert(1)"]
        assert [r.url for r in dev.bookmarks] == ["https://python.org"]
        assert [r.url for r in dev.children["Docs"].bookmarks] == ["https://docs.python.org/3/"]

    def test_children_keep_first_seen_order(self):
        records = [
            make_record("https://1", folder=["Zeta"]),
            make_record("https://2", folder=["alpha"]),
            make_record("https://3", folder=["Beta"]),
        ]
        root = build_folder_tree(records)

        assert [c.name for c in root.sorted_children()] == ["Zeta", "alpha", "Beta"]
        assert [c.name for c in root.sorted_children(alpha=True)] == ["alpha", "Beta", "Zeta"]

    def test_count_and_walk(self, sample_records):
        root = build_folder_tree(sample_records)

        assert root.count() == 4
        assert not root.is_empty()
        assert [(depth, node.name) for depth, node in root.walk()] == [
            (0, ""),
            (1, "Bookmarks bar"),
            (2, "Dev"),
            (3, "Docs"),
            (1, "Bookmarks Menu"),
        ]

    def test_empty_tree(self):
        root = build_folder_tree([])

        assert root.is_empty()
        assert list(root.walk()) == [(0, root)]
