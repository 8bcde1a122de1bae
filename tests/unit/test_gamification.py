"""Unit tests for streak, XP and LifeScore updates on a user row."""

from datetime import date
from types import SimpleNamespace

import pytest

from qiclife.gamification.service import award_xp, update_lifescore, update_streak


class StubSession:
    def __init__(self):
        self.added = []

    def add(self, obj):
        self.added.append(obj)

    async def flush(self):
        pass


def _user(**overrides):
    values = {
        "id": "u1",
        "xp": 0,
        "level": 1,
        "lifescore": 0,
        "coins": 1000,
        "current_streak": 0,
        "longest_streak": 0,
        "last_activity_date": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestStreak:
    @pytest.mark.asyncio
    async def test_first_activity(self):
        user = _user()
        result = await update_streak(StubSession(), user, date(2026, 3, 1))
        assert result == {"current_streak": 1, "longest_streak": 1, "streak_broken": False}
        assert user.last_activity_date == date(2026, 3, 1)

    @pytest.mark.asyncio
    async def test_same_day_counts_once(self):
        user = _user(current_streak=3, longest_streak=3, last_activity_date=date(2026, 3, 1))
        result = await update_streak(StubSession(), user, date(2026, 3, 1))
        assert result["current_streak"] == 3

    @pytest.mark.asyncio
    async def test_consecutive_day_extends(self):
        user = _user(current_streak=3, longest_streak=5, last_activity_date=date(2026, 2, 28))
        result = await update_streak(StubSession(), user, date(2026, 3, 1))
        assert result == {"current_streak": 4, "longest_streak": 5, "streak_broken": False}

    @pytest.mark.asyncio
    async def test_gap_restarts(self):
        user = _user(current_streak=6, longest_streak=6, last_activity_date=date(2026, 2, 26))
        result = await update_streak(StubSession(), user, date(2026, 3, 1))
        assert result == {"current_streak": 1, "longest_streak": 6, "streak_broken": True}


class TestXp:
    @pytest.mark.asyncio
    async def test_level_up(self):
        user = _user(xp=90)
        result = await award_xp(StubSession(), user, 30)
        assert result["new_xp"] == 120
        assert result["new_level"] == 2
        assert result["level_up"] is True
        assert result["progress"] == {"current": 20, "required": 100, "percentage": 20}

    @pytest.mark.asyncio
    async def test_xp_never_negative(self):
        user = _user(xp=10)
        await award_xp(StubSession(), user, -50)
        assert user.xp == 0
        assert user.level == 1


class TestLifeScoreUpdate:
    @pytest.mark.asyncio
    async def test_clamped_and_recorded(self):
        db = StubSession()
        user = _user(lifescore=97)
        result = await update_lifescore(db, user, 10, "mission_completion")
        assert result["new_lifescore"] == 100
        assert len(db.added) == 1
        assert db.added[0].change_amount == 3

    @pytest.mark.asyncio
    async def test_no_history_without_change(self):
        db = StubSession()
        user = _user(lifescore=100)
        await update_lifescore(db, user, 5)
        assert db.added == []
