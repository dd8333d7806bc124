"""
Tests for settings validation.
"""

import pytest
from pydantic import ValidationError

from .conftest import make_settings


class TestSettings:
    def test_defaults(self):
        settings = make_settings(
            list_debounce_wait=5.0,
            list_debounce_max_wait=60.0,
            draft_order=["factionSelect", "factionSelect"] + ["playerPick"] * 10,
        )
        assert settings.draft_player_picks == 10
        assert settings.api_prefix == "/api/v1"
        assert settings.cache_key_prefix == "pugstats:"

    def test_unknown_draft_choice(self):
        with pytest.raises(ValidationError):
            make_settings(draft_order=["playerPick", "coinFlip"])

    def test_max_wait_below_wait(self):
        with pytest.raises(ValidationError):
            make_settings(list_debounce_wait=10, list_debounce_max_wait=1)

    def test_debounce_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_settings(list_debounce_wait=0)
