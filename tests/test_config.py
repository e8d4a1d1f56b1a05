"""Tests for settings."""

import pytest

from scopefx import Settings, configure, get_settings


class TestSettings:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("SCOPEFX_MAX_PASSES", raising=False)
        assert Settings.from_env().max_passes == 100

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SCOPEFX_MAX_PASSES", "7")
        assert Settings.from_env().max_passes == 7

    def test_blank_env_uses_default(self, monkeypatch):
        monkeypatch.setenv("SCOPEFX_MAX_PASSES", " ")
        assert Settings.from_env().max_passes == 100

    def test_bad_env(self, monkeypatch):
        monkeypatch.setenv("SCOPEFX_MAX_PASSES", "many")
        with pytest.raises(ValueError, match="SCOPEFX_MAX_PASSES"):
            Settings.from_env()

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            Settings(max_passes=0)


class TestConfigure:
    def test_returns_previous(self):
        before = get_settings()
        previous = configure(max_passes=3)
        try:
            assert previous is before
            assert get_settings().max_passes == 3
        finally:
            configure(max_passes=before.max_passes)
        assert get_settings() == before

    def test_unknown_setting(self):
        with pytest.raises(TypeError):
            configure(nope=1)
