"""Tests for the Bookmark Aggregator."""
