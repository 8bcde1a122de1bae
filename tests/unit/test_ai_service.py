"""Unit tests for provider output handling and catalog merging."""

import json

import pytest

from qiclife.ai import engine
from qiclife.ai.provider import (
    AIProviderError,
    BaseAIProvider,
    LocalProvider,
    OpenAIProvider,
    build_provider,
    parse_json,
    strip_code_fence,
)
from qiclife.ai.service import AIService, merge_prediction
from qiclife.config import Settings


class FakeProvider(BaseAIProvider):
    """Returns a canned completion, or raises when given an exception."""

    name = "fake"

    def __init__(self, reply):
        self.reply = reply
        self.prompts: list[str] = []

    async def complete(self, prompt, *, max_tokens=None, temperature=None):
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class TestParsing:
    def test_strip_code_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_text_untouched(self):
        assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'

    def test_parse_json(self):
        assert parse_json('```\n[1, 2]\n```') == [1, 2]

    def test_parse_invalid_json_raises(self):
        with pytest.raises(AIProviderError):
            parse_json("not json")

    def test_parse_empty_raises(self):
        with pytest.raises(AIProviderError):
            parse_json("")


class TestBuildProvider:
    def test_local_by_default(self):
        assert isinstance(build_provider(Settings(ai_provider="local")), LocalProvider)

    def test_openai_without_key_degrades_to_local(self):
        assert isinstance(build_provider(Settings(ai_provider="openai", openai_api_key="")), LocalProvider)

    def test_openai_with_key(self):
        provider = build_provider(Settings(ai_provider="openai", openai_api_key="sk-test"))
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o-mini"

    def test_unknown_provider_is_local(self):
        assert isinstance(build_provider(Settings(ai_provider="mystery")), LocalProvider)


class TestMergePrediction:
    def test_empty_raw_uses_rules(self):
        result = merge_prediction(None, "car", {"walk_minutes": 30, "diet_quality": "good"}, {})
        assert result["lifescore_impact"] == 8
        assert result["best_plan"] == result["recommended_plans"][0]
        assert len(result["scenarios"]) == 4
        assert all("LifeScore impact" in s for s in result["scenarios"])

    def test_catalog_fills_missing_plan_fields(self):
        raw = {
            "recommended_plans": [
                {"plan_id": "qic-tpl-car", "plan_name": "QIC Third Party Liability", "relevance_score": 15},
                {"plan_id": "qic-comprehensive-car", "plan_name": "", "description": ""},
                {"relevance_score": 9},
            ]
        }
        result = merge_prediction(raw, "car", {}, {})
        plans = result["recommended_plans"]
        assert [p["plan_id"] for p in plans] == ["qic-tpl-car", "qic-comprehensive-car"]
        assert plans[0]["relevance_score"] == 10
        assert plans[1]["relevance_score"] == 8
        assert plans[1]["description"]
        assert plans[1]["plan_name"] == "QIC Comprehensive Car Insurance"
        assert "base_relevance" not in plans[1]
        assert result["best_plan"]["plan_id"] == "qic-tpl-car"

    def test_plans_capped_at_five_and_sorted(self):
        raw = {"recommended_plans": [{"plan_name": f"Plan {i}", "relevance_score": i} for i in range(1, 8)]}
        plans = merge_prediction(raw, "health", {}, {})["recommended_plans"]
        assert [p["relevance_score"] for p in plans] == [7, 6, 5, 4, 3]
        assert plans[0]["plan_type"] == "health"

    def test_out_of_range_fields_are_clamped(self):
        raw = {"lifescore_impact": 999, "severity_score": 0, "xp_reward": 5000, "risk_level": "extreme"}
        result = merge_prediction(raw, "car", {}, {})
        assert result["lifescore_impact"] == 50
        assert result["severity_score"] == 1
        assert result["xp_reward"] == 100
        assert result["risk_level"] == "medium"

    def test_provider_scenarios_kept_when_well_formed(self):
        scenarios = ["a", "b", "c", "d"]
        assert merge_prediction({"scenarios": scenarios}, "car", {}, {})["scenarios"] == scenarios

    def test_malformed_scenarios_regenerated(self):
        result = merge_prediction({"scenarios": ["only one"]}, "car", {}, {})
        assert len(result["scenarios"]) == 4


class TestAIServiceFallbacks:
    @pytest.mark.asyncio
    async def test_local_provider_never_called(self):
        service = AIService(LocalProvider())
        profile = await service.generate_profile({"step2": {"exercise_frequency": 2}})
        assert profile["health_score"] == 60

    @pytest.mark.asyncio
    async def test_provider_error_falls_back(self):
        service = AIService(FakeProvider(AIProviderError("boom")))
        recs = await service.recommendations({"lifescore": 30})
        assert recs[0]["id"] == "rec-health-1"

    @pytest.mark.asyncio
    async def test_invalid_json_falls_back(self):
        service = AIService(FakeProvider("sorry, I cannot help"))
        steps = await service.mission_steps({"category": "health"}, {})
        assert len(steps) == 3
        assert steps[0]["title"] == "Schedule Health Checkup"

    @pytest.mark.asyncio
    async def test_remote_profile_keeps_local_integrations(self):
        reply = json.dumps({"risk_level": "low", "health_score": 140, "integrations": ["Other"]})
        service = AIService(FakeProvider(reply))
        profile = await service.generate_profile({"step6": {"integrations": ["QIC Mobile App"]}})
        assert profile["risk_level"] == "low"
        assert profile["health_score"] == 100
        assert profile["integrations"] == ["QIC Mobile App"]

    @pytest.mark.asyncio
    async def test_remote_missions_are_normalised(self):
        reply = json.dumps([{"title": "Walk more", "difficulty": "hard", "category": "unknown"}])
        service = AIService(FakeProvider(reply))
        missions = await service.missions_for_user({})
        assert len(missions) == 1
        assert missions[0]["category"] == "health"
        assert missions[0]["coin_reward"] == 30
        assert missions[0]["id"].startswith("ai-")

    @pytest.mark.asyncio
    async def test_daily_brief_is_truncated(self):
        service = AIService(FakeProvider(json.dumps({"daily_brief": "x" * 500})))
        assert len(await service.daily_brief({})) == 200

    @pytest.mark.asyncio
    async def test_chat_uses_provider_text(self):
        service = AIService(FakeProvider("Try the hydration mission."))
        assert await service.chat("hi", {}) == "Try the hydration mission."

    @pytest.mark.asyncio
    async def test_remote_roulette_gaps_filled_locally(self):
        reply = json.dumps({"wheel_spin_result": "Dukhan Beach Escape", "itinerary": [1, "Pack water"], "ctas": "x"})
        service = AIService(FakeProvider(reply))
        roulette = await service.road_trip_roulette({})
        assert roulette["wheel_spin_result"] == "Dukhan Beach Escape"
        assert roulette["itinerary"] == ["Pack water"]
        assert len(roulette["ctas"]) == 3
        assert roulette["reward"].startswith("100 QIC Coins")

    @pytest.mark.asyncio
    async def test_roulette_without_result_uses_wheel(self):
        service = AIService(FakeProvider(json.dumps({"itinerary": ["a"]})))
        roulette = await service.road_trip_roulette({"insurance_preferences": ["Car"]})
        assert roulette["wheel_spin_result"] in engine.ROULETTE_DESTINATIONS
        assert roulette["itinerary"][0].startswith("Fuel up")
