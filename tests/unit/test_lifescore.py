"""Unit tests for LifeScore, XP and level arithmetic."""

import math

from qiclife.gamification.lifescore import (
    MAX_LIFESCORE,
    clamp_lifescore,
    level_from_xp,
    lifescore_percentage,
    lifescore_status,
    xp_for_level,
    xp_progress,
)


class TestClampLifescore:
    def test_within_range_is_rounded(self):
        assert clamp_lifescore(42.6) == 43

    def test_clamps_above_max(self):
        assert clamp_lifescore(250) == MAX_LIFESCORE

    def test_clamps_below_zero(self):
        assert clamp_lifescore(-12) == 0

    def test_nan_counts_as_zero(self):
        assert clamp_lifescore(math.nan) == 0


class TestLevels:
    def test_level_one_at_zero_xp(self):
        assert level_from_xp(0) == 1

    def test_level_boundaries(self):
        assert level_from_xp(99) == 1
        assert level_from_xp(100) == 2
        assert level_from_xp(1050) == 11

    def test_negative_xp_is_level_one(self):
        assert level_from_xp(-40) == 1

    def test_xp_for_level(self):
        assert xp_for_level(1) == 100
        assert xp_for_level(5) == 500

    def test_level_matches_xp_for_every_hundred(self):
        for xp in range(0, 2000, 37):
            assert level_from_xp(xp) == xp // 100 + 1

    def test_xp_progress_within_level(self):
        assert xp_progress(150, 2) == {"current": 50, "required": 100, "percentage": 50}

    def test_xp_progress_start_of_level(self):
        assert xp_progress(0, 1)["percentage"] == 0


class TestStatus:
    def test_percentage(self):
        assert lifescore_percentage(73) == 73
        assert lifescore_percentage(140) == 100

    def test_status_bands(self):
        assert lifescore_status(85) == "excellent"
        assert lifescore_status(80) == "excellent"
        assert lifescore_status(65) == "high"
        assert lifescore_status(40) == "medium"
        assert lifescore_status(39) == "low"
