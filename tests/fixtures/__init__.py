"""Shared test fixtures and fake adapters."""
