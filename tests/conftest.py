"""
Pytest configuration and shared fixtures for bookmark aggregator tests.

This module provides sample records, registries populated with fake
adapters, and helpers shared across test modules.
"""

import logging
from datetime import datetime, timezone
from typing import List

import pytest

from bookmark_aggregator.core.data_models import BookmarkRecord, Collection, SourceDescriptor
from bookmark_aggregator.core.exporters import JSONRenderer, MarkdownRenderer
from bookmark_aggregator.core.pipeline import PipelineOrchestrator
from bookmark_aggregator.core.registry import AdapterRegistry, reset_registry
from tests.fixtures.fake_adapters import FakeRenderer, FakeSource

# ============================================================================
# Sample Data
# ============================================================================

CHROME_BOOKMARKS = [
    ("https://python.org", "Python", ["Bookmarks bar", "Dev"]),
    ("https://docs.python.org/3/", "Python Docs", ["Bookmarks bar", "Dev", "Docs"]),
    ("https://news.ycombinator.com", "Hacker News", ["Bookmarks bar"]),
]

FIREFOX_BOOKMARKS = [
    ("https://mozilla.org", "Mozilla", ["Bookmarks Menu"]),
    ("https://python.org", "Python (again)", ["Bookmarks Menu", "Dev"]),
]


@pytest.fixture
def sample_records() -> List[BookmarkRecord]:
    """Records from two sources with nested folders, dates and tags."""
    added = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    return [
        BookmarkRecord(
            url="https://python.org",
            title="Python",
            folder_path=["Bookmarks bar", "Dev"],
            date_added=added,
            source_name="chrome",
            profile="Default",
            tags=["lang"],
        ),
        BookmarkRecord(
            url="https://docs.python.org/3/",
            title="python docs",
            folder_path=["Bookmarks bar", "Dev", "Docs"],
            source_name="chrome",
            profile="Default",
        ),
        BookmarkRecord(
            url="javascript:alert(1)",
            title="Bookmarklet",
            folder_path=["Bookmarks bar"],
            source_name="chrome",
            profile="Default",
        ),
        BookmarkRecord(
            url="https://mozilla.org",
            title="Mozilla",
            folder_path=["Bookmarks Menu"],
            source_name="firefox",
            profile="default-release",
        ),
    ]


@pytest.fixture
def sample_collection(sample_records) -> Collection:
    """Collection holding sample_records, split into chrome and firefox reads."""
    collection = Collection()
    collection.add(sample_records[:3], SourceDescriptor(name="chrome", profile="Default"))
    collection.add(
        sample_records[3:], SourceDescriptor(name="firefox", profile="default-release")
    )
    return collection


# ============================================================================
# Registry and Orchestrator
# ============================================================================


@pytest.fixture
def chrome_source() -> FakeSource:
    return FakeSource("chrome", CHROME_BOOKMARKS, profiles=["Default", "Profile 1"])


@pytest.fixture
def firefox_source() -> FakeSource:
    return FakeSource("firefox", FIREFOX_BOOKMARKS, profiles=["default-release"])


@pytest.fixture
def fake_registry(chrome_source, firefox_source) -> AdapterRegistry:
    """Registry with two fake sources and the JSON, Markdown and fake renderers."""
    registry = AdapterRegistry()
    registry.register_source("chrome", chrome_source)
    registry.register_source("firefox", firefox_source)
    registry.register_renderer("json", JSONRenderer())
    registry.register_renderer("markdown", MarkdownRenderer())
    registry.register_renderer("fake", FakeRenderer())
    return registry


@pytest.fixture
def orchestrator(fake_registry) -> PipelineOrchestrator:
    return PipelineOrchestrator(fake_registry)


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch):
    """Isolate every test from the global registry and the environment."""
    monkeypatch.delenv("BOOKMARK_AGGREGATOR_LOG_LEVEL", raising=False)
    reset_registry()
    yield
    reset_registry()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)
