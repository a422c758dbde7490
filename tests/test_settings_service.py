#!/usr/bin/env python3
"""Tests for SettingsService."""


class TestSettings:
    """Key-value settings with seeded defaults."""

    def test_defaults_seeded(self, ctx):
        """Region and theme defaults exist after init."""
        assert ctx.settings.get("region") == "ID"
        assert ctx.settings.get("theme_mode") == "system"

    def test_missing_key_returns_default(self, ctx):
        """Missing keys return the given default."""
        assert ctx.settings.get("currency") is None
        assert ctx.settings.get("currency", "USD") == "USD"

    def test_set_overwrites(self, ctx):
        """Setting an existing key replaces its value."""
        ctx.settings.set("region", "US")
        assert ctx.settings.get("region") == "US"

    def test_set_new_key(self, ctx):
        """Setting a new key adds it."""
        ctx.settings.set("currency", "IDR")
        assert ctx.settings.get_all() == {
            "currency": "IDR",
            "region": "ID",
            "theme_mode": "system",
        }

    def test_context_region_follows_setting(self, ctx):
        """The context region tracks the stored setting."""
        assert ctx.region.code == "ID"
        ctx.settings.set("region", "US")
        assert ctx.region.code == "US"
