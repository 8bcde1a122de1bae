"""Unit tests for the deterministic scenario and profile rules."""

from datetime import date

from qiclife.ai import engine


def _predict(**inputs):
    return engine.scenario_prediction(inputs)


class TestScenarioPrediction:
    def test_healthy_commuter(self):
        result = _predict(
            walk_minutes=30, diet_quality="good", commute_distance=10, driving_hours=1, seatbelt_usage="always"
        )
        assert result["lifescore_impact"] == 11
        assert result["xp_reward"] == 53
        assert result["risk_level"] == "low"
        assert result["severity_score"] == 4
        assert [m["id"] for m in result["suggested_missions"]] == ["ai-meal-plan"]
        assert result["narrative"].endswith("Overall impact preview: LifeScore +11, Risk low.")

    def test_defaults(self):
        result = _predict()
        assert result["lifescore_impact"] == 2
        assert result["xp_reward"] == 26
        assert result["risk_level"] == "medium"
        assert result["severity_score"] == 5

    def test_risky_driver_is_clamped_to_minimum(self):
        result = _predict(commute_distance=40, driving_hours=3, seatbelt_usage="rarely", diet_quality="poor")
        assert result["lifescore_impact"] == 1
        assert result["xp_reward"] == 18
        assert result["risk_level"] == "high"
        assert result["severity_score"] == 8
        ids = {m["id"] for m in result["suggested_missions"]}
        assert {"ai-walk-30", "ai-meal-plan", "ai-seatbelt"} == ids

    def test_delta_capped_at_twenty(self):
        result = _predict(walk_minutes=200, diet_quality="excellent", seatbelt_usage="always")
        assert result["lifescore_impact"] == 20
        assert result["xp_reward"] == 80
        assert result["risk_level"] == "low"
        assert [m["id"] for m in result["suggested_missions"]] == ["ai-checkup"]

    def test_non_numeric_inputs_count_as_zero(self):
        result = _predict(walk_minutes="lots", commute_distance=None)
        assert result["lifescore_impact"] == 2

    def test_recommended_plans_follow_category(self):
        result = engine.scenario_prediction({"category": "travel"})
        plans = result["recommended_plans"]
        assert plans
        assert all(p["plan_type"] == "travel" for p in plans)
        scores = [p["relevance_score"] for p in plans]
        assert scores == sorted(scores, reverse=True)
        assert "base_relevance" not in plans[0]

    def test_first_time_buyer_bonus(self):
        regular = engine.recommended_plans("car")
        first_time = engine.recommended_plans("car", {"first_time_buyer": True})
        assert first_time[0]["relevance_score"] == regular[0]["relevance_score"] + 1


class TestCategories:
    def test_aliases(self):
        assert engine.normalize_category("auto") == "car"
        assert engine.normalize_category("Umrah") == "travel"
        assert engine.normalize_category("") == "car"
        assert engine.normalize_category("health") == "health"


class TestScenarioOutcomes:
    def test_four_outcomes_with_lifescore_impact(self):
        outcomes = engine.scenario_outcomes("car", 8, "medium")
        assert len(outcomes) == 4
        assert all("LifeScore impact" in o for o in outcomes)


class TestHealthScore:
    def test_formula(self):
        step2 = {"exercise_frequency": 3, "diet_quality": "good", "daily_routine": "active"}
        assert engine.health_score(step2) == 90

    def test_clamped_to_100(self):
        step2 = {"exercise_frequency": 10, "diet_quality": "excellent", "daily_routine": "active"}
        assert engine.health_score(step2) == 100

    def test_missing_step_is_fifty(self):
        assert engine.health_score(None) == 50

    def test_poor_sedentary(self):
        assert engine.health_score({"diet_quality": "poor", "daily_routine": "sedentary"}) == 35


class TestLocalProfile:
    def test_profile_fields(self):
        profile = engine.local_profile({
            "step1": {"risk_tolerance": "high"},
            "step3": {"dependents": 2},
            "step6": {"integrations": ["QIC Mobile App"]},
        })
        assert profile["risk_level"] == "high"
        assert profile["family_priority"] == "high"
        assert profile["financial_goals"] == "moderate"
        assert profile["insurance_focus"] == ["health"]
        assert profile["integrations"] == ["QIC Mobile App"]
        assert profile["ai_personality"] == "encouraging"


class TestRecommendations:
    def test_low_lifescore_suggests_hydration(self):
        recs = engine.local_recommendations({"lifescore": 30})
        assert recs[0]["title"] == "Hydration Habit"

    def test_long_drives_and_health_portal(self):
        recs = engine.local_recommendations({
            "lifescore": 70,
            "driving_hours": 3,
            "policy_review_days": 10,
            "integrations": ["QIC Health Portal"],
        })
        assert [r["id"] for r in recs] == ["rec-drive-1", "rec-sync-1"]

    def test_defaults_when_nothing_matches(self):
        recs = engine.local_recommendations({"lifescore": 70, "driving_hours": 1, "policy_review_days": 10})
        assert [r["id"] for r in recs] == ["rec-1", "rec-2"]


class TestInsights:
    def test_new_user_gets_every_nudge(self):
        items = engine.insights({"integrations": ["QIC Health Portal"]}, 20, 0, 0)
        assert [i["type"] for i in items] == ["lifescore", "streak", "integration", "mission"]

    def test_engaged_user_gets_none(self):
        assert engine.insights({}, 80, 4, 3) == []


class TestMissionRules:
    def test_steps_are_three(self):
        steps = engine.mission_steps("safe_driving")
        assert [s["step_number"] for s in steps] == [1, 2, 3]

    def test_unknown_category_uses_health_steps(self):
        assert engine.mission_steps("unknown") == engine.mission_steps("health")

    def test_first_time_car_mission(self):
        missions = engine.local_missions_for_user(
            {"insurance_preferences": ["car"], "first_time_buyer": True}, "seed"
        )
        assert missions[0]["id"] == "ai-seed-car"
        assert "3 Months FREE" in missions[0]["title_en"]

    def test_default_mission_when_no_preferences(self):
        missions = engine.local_missions_for_user({}, "x")
        assert [m["id"] for m in missions] == ["ai-x-default"]

    def test_adaptive_missions_cover_each_tier(self):
        missions = engine.adaptive_missions({}, "user-1234567890", date(2026, 3, 1))
        assert [m["difficulty"] for m in missions] == ["easy", "medium", "hard"]
        assert [m["coin_reward"] for m in missions] == [50, 150, 300]
        assert all(m["recurrence_type"] == "daily" for m in missions)
        assert missions[0]["id"] == "daily-easy-user-123-2026-03-01"

    def test_daily_brief_mentions_vehicle_for_car_owners(self):
        brief = engine.daily_brief({"name": "Aisha", "insurance_preferences": ["Car"]})
        assert brief.startswith("Marhaba Aisha!")
        assert "vehicle" in brief
