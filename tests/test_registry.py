"""
Unit tests for the adapter registry.
"""

import threading

from bookmark_aggregator.core.registry import AdapterRegistry, get_registry, reset_registry
from tests.fixtures.fake_adapters import FakeRenderer, FakeSource


class TestAdapterRegistry:
    """Test source and renderer registration."""

    def test_register_and_get_source(self):
        registry = AdapterRegistry()
        source = FakeSource("chrome")

        registry.register_source("chrome", source)

        assert registry.get_source("chrome") is source
        assert registry.has_source("chrome")

    def test_names_are_case_insensitive(self):
        registry = AdapterRegistry()
        source = FakeSource("chrome")

        registry.register_source("Chrome", source)

        assert registry.get_source("CHROME") is source
        assert registry.list_source_names() == ["chrome"]

    def test_unknown_lookup_returns_none(self):
        registry = AdapterRegistry()

        assert registry.get_source("missing") is None
        assert registry.get_renderer("missing") is None
        assert not registry.has_renderer("missing")

    def test_register_replaces(self, caplog):
        registry = AdapterRegistry()
        first, second = FakeSource("chrome"), FakeSource("chrome")

        registry.register_source("chrome", first)
        registry.register_source("chrome", second)

        assert registry.get_source("chrome") is second
        assert "already registered" in caplog.text

    def test_list_names_sorted(self):
        registry = AdapterRegistry()
        for name in ("safari", "chrome", "firefox"):
            registry.register_source(name, FakeSource(name))
        for name in ("opml", "json"):
            registry.register_renderer(name, FakeRenderer(name))

        assert registry.list_source_names() == ["chrome", "firefox", "safari"]
        assert registry.list_renderer_names() == ["json", "opml"]

    def test_available_sources(self):
        registry = AdapterRegistry()
        registry.register_source("chrome", FakeSource("chrome"))
        registry.register_source("safari", FakeSource("safari", available=False))

        assert [s.name for s in registry.available_sources()] == ["chrome"]

    def test_unregister(self):
        registry = AdapterRegistry()
        registry.register_source("chrome", FakeSource("chrome"))
        registry.register_renderer("json", FakeRenderer("json"))

        assert registry.unregister_source("chrome")
        assert not registry.unregister_source("chrome")
        assert registry.unregister_renderer("json")
        assert registry.list_source_names() == []

    def test_clear(self):
        registry = AdapterRegistry()
        registry.register_source("chrome", FakeSource("chrome"))
        registry.register_renderer("json", FakeRenderer("json"))

        registry.clear()

        assert registry.list_source_names() == []
        assert registry.list_renderer_names() == []

    def test_concurrent_registration(self):
        registry = AdapterRegistry()

        def register(index):
            for i in range(50):
                name = f"src{index}-{i}"
                registry.register_source(name, FakeSource(name))
                registry.get_source(name)

        threads = [threading.Thread(target=register, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry.list_source_names()) == 200


class TestGlobalRegistry:
    """Test the process-wide registry."""

    def test_builtin_adapters_registered(self):
        registry = get_registry()

        assert registry.list_source_names() == [
            "brave",
            "chrome",
            "chromium",
            "edge",
            "firefox",
            "opml",
            "safari",
        ]
        assert registry.list_renderer_names() == ["html", "json", "markdown", "opml", "yaml"]

    def test_same_instance_until_reset(self):
        first = get_registry()

        assert get_registry() is first
        reset_registry()
        assert get_registry() is not first
