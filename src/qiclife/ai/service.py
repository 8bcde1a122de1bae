"""AI service: remote provider calls with deterministic fallbacks.

Every public method returns a usable result. When the provider is local,
fails, or answers with something that does not parse, the rules in
``qiclife.ai.engine`` produce the answer instead.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

import structlog

from qiclife.ai import engine, prompts
from qiclife.ai.provider import AIProviderError, BaseAIProvider, get_ai_provider

logger = structlog.get_logger()

VALID_CATEGORIES = ("safe_driving", "health", "financial_guardian", "family_protection", "lifestyle")
VALID_DIFFICULTIES = ("easy", "medium", "hard")


def _clamp_int(value: Any, low: int, high: int, default: int) -> int:  # noqa: ANN401
    try:
        return max(low, min(high, int(round(float(value)))))
    except (TypeError, ValueError):
        return default


def merge_prediction(
    raw: dict[str, Any] | None,
    category: str,
    inputs: dict[str, Any],
    profile: dict[str, Any],
) -> dict[str, Any]:
    """Combine a provider prediction with the static plan catalog.

    Catalog entries fill any plan fields the provider left empty; missing
    top-level fields are regenerated from the deterministic rules. Plans end
    up sorted by relevance, capped at five, with the first as ``best_plan``.
    """
    raw = raw if isinstance(raw, dict) else {}
    baseline = engine.scenario_prediction(inputs, category, profile)

    plans: list[dict[str, Any]] = []
    for item in raw.get("recommended_plans") or []:
        if not isinstance(item, dict):
            continue
        known = engine.catalog_plan(item.get("plan_id"), item.get("plan_name"))
        plan = dict(item)
        if known is not None:
            for key, value in known.items():
                if key in ("base_relevance", "first_time_buyer_bonus"):
                    continue
                if not plan.get(key):
                    plan[key] = list(value) if isinstance(value, list) else value
            default_relevance = known["base_relevance"]
        else:
            default_relevance = 5
        if not plan.get("plan_name"):
            continue
        plan.setdefault("plan_type", category)
        plan.setdefault("insurance_type", category.title())
        plan.setdefault("key_features", [])
        plan.setdefault("standard_coverages", [])
        plan["relevance_score"] = _clamp_int(plan.get("relevance_score"), 1, 10, default_relevance)
        plans.append(plan)
    if not plans:
        plans = baseline["recommended_plans"]
    plans = sorted(plans, key=lambda p: p["relevance_score"], reverse=True)[:5]

    lifescore_impact = _clamp_int(raw.get("lifescore_impact"), -50, 50, baseline["lifescore_impact"])
    risk = raw.get("risk_level") if raw.get("risk_level") in ("low", "medium", "high") else baseline["risk_level"]
    scenarios = raw.get("scenarios")
    if not (isinstance(scenarios, list) and len(scenarios) == 4 and all(isinstance(s, str) for s in scenarios)):
        scenarios = engine.scenario_outcomes(category, lifescore_impact, risk)

    missions = raw.get("suggested_missions")
    if not (isinstance(missions, list) and missions and all(isinstance(m, dict) for m in missions)):
        missions = baseline["suggested_missions"]

    return {
        "narrative": raw.get("narrative") or baseline["narrative"],
        "severity_score": _clamp_int(raw.get("severity_score"), 1, 10, baseline["severity_score"]),
        "risk_level": risk,
        "lifescore_impact": lifescore_impact,
        "xp_reward": _clamp_int(raw.get("xp_reward"), 10, 100, baseline["xp_reward"]),
        "suggested_missions": missions,
        "recommended_plans": plans,
        "best_plan": plans[0] if plans else None,
        "scenarios": scenarios,
    }


class AIService:
    """Facade over the configured provider."""

    def __init__(self, provider: BaseAIProvider | None = None) -> None:
        self._provider = provider

    @property
    def provider(self) -> BaseAIProvider:
        return self._provider or get_ai_provider()

    async def _remote_json(self, task: str, prompt: str, **kwargs: Any) -> Any:  # noqa: ANN401
        if self.provider.is_local:
            return None
        try:
            return await self.provider.complete_json(prompt, **kwargs)
        except AIProviderError as e:
            logger.warning("ai_fallback", task=task, provider=self.provider.name, error=str(e))
            return None

    async def recommendations(self, profile: dict[str, Any]) -> list[dict[str, Any]]:
        raw = await self._remote_json("recommendations", prompts.recommendations_prompt(profile), max_tokens=600)
        if isinstance(raw, list) and raw:
            recs = []
            for i, item in enumerate(raw):
                if not isinstance(item, dict) or not item.get("title"):
                    continue
                recs.append({
                    "id": item.get("id") or f"rec-ai-{i + 1}",
                    "type": item.get("type") or "mission",
                    "title": item["title"],
                    "description": item.get("description") or item.get("reason") or "",
                    "priority": item.get("priority") or "medium",
                    "reason": item.get("reason"),
                    "xp_reward": _clamp_int(item.get("xp_reward"), 0, 500, 50),
                    "lifescore_impact": _clamp_int(item.get("lifescore_impact"), 0, 50, 5),
                })
            if recs:
                return recs
        return engine.local_recommendations(profile)

    async def generate_profile(self, onboarding: dict[str, Any]) -> dict[str, Any]:
        raw = await self._remote_json("profile", prompts.profile_prompt(onboarding), max_tokens=400)
        local = engine.local_profile(onboarding)
        if isinstance(raw, dict) and raw:
            merged = {**local, **raw}
            merged["health_score"] = _clamp_int(merged.get("health_score"), 0, 100, local["health_score"])
            merged["integrations"] = local["integrations"]
            return merged
        return local

    def scenario_prediction(self, inputs: dict[str, Any], category: str | None = None,
                            profile: dict[str, Any] | None = None) -> dict[str, Any]:
        """Deterministic, explainable prediction used by the scenarios API."""
        return engine.scenario_prediction(inputs, category, profile)

    async def predict_scenario_outcome(self, payload: dict[str, Any], profile: dict[str, Any]) -> dict[str, Any]:
        """Full AI scenario simulation merged with the plan catalog."""
        category = engine.normalize_category(payload.get("category") or payload.get("type"))
        inputs = payload.get("inputs") if isinstance(payload.get("inputs"), dict) else payload
        overrides = payload.get("user_profile")
        merged_profile = {**profile, **overrides} if isinstance(overrides, dict) else dict(profile)
        scenario_text = str(payload.get("scenario_description") or payload.get("scenario") or payload.get("text") or "")
        raw = await self._remote_json(
            "scenario",
            prompts.scenario_prompt(category, scenario_text, merged_profile),
            max_tokens=800,
        )
        return merge_prediction(raw, category, inputs, merged_profile)

    async def missions_for_user(self, profile: dict[str, Any]) -> list[dict[str, Any]]:
        seed = uuid.uuid4().hex[:12]
        raw = await self._remote_json("missions", prompts.missions_prompt(profile), max_tokens=1200, temperature=0.8)
        if isinstance(raw, list) and raw:
            missions = []
            for i, m in enumerate(raw[:5]):
                if not isinstance(m, dict):
                    continue
                difficulty = m.get("difficulty") if m.get("difficulty") in VALID_DIFFICULTIES else "easy"
                missions.append({
                    "id": f"ai-{seed}-{i}",
                    "title_en": m.get("title_en") or m.get("title") or "Mission",
                    "title_ar": m.get("title_ar") or m.get("title") or "مهمة",
                    "description_en": m.get("description_en") or m.get("description") or "Complete this mission",
                    "description_ar": m.get("description_ar"),
                    "category": m.get("category") if m.get("category") in VALID_CATEGORIES else "health",
                    "difficulty": difficulty,
                    "xp_reward": _clamp_int(m.get("xp_reward"), 10, 500, 50),
                    "lifescore_impact": _clamp_int(m.get("lifescore_impact"), 0, 50, 5),
                    "coin_reward": _clamp_int(m.get("coin_reward"), 0, 1000, engine.COIN_BY_DIFFICULTY[difficulty]),
                })
            if missions:
                return missions
        return engine.local_missions_for_user(profile, seed)

    async def mission_steps(self, mission: dict[str, Any], profile: dict[str, Any]) -> list[dict[str, Any]]:
        raw = await self._remote_json("mission_steps", prompts.mission_steps_prompt(mission, profile), max_tokens=600)
        if isinstance(raw, list) and len(raw) == 3 and all(isinstance(s, dict) for s in raw):
            return [
                {
                    "step_number": i,
                    "title": step.get("title") or f"Step {i}",
                    "description": step.get("description") or "Complete this step",
                }
                for i, step in enumerate(raw, start=1)
            ]
        return engine.mission_steps(mission.get("category"))

    async def daily_brief(self, profile: dict[str, Any]) -> str:
        raw = await self._remote_json("daily_brief", prompts.daily_brief_prompt(profile), max_tokens=100, temperature=0.8)
        if isinstance(raw, dict) and isinstance(raw.get("daily_brief"), str) and raw["daily_brief"].strip():
            return raw["daily_brief"].strip()[:200]
        return engine.daily_brief(profile)

    async def adaptive_missions(self, profile: dict[str, Any], user_id: str, today: date) -> list[dict[str, Any]]:
        local = engine.adaptive_missions(profile, user_id, today)
        raw = await self._remote_json("adaptive_missions", prompts.adaptive_missions_prompt(profile), max_tokens=800)
        items = raw.get("missions") if isinstance(raw, dict) else None
        if not (isinstance(items, list) and len(items) >= 3):
            return local
        # Remote copy over the local tier skeleton keeps ids and reward tiers stable
        missions = []
        for base, item in zip(local, items[:3]):
            item = item if isinstance(item, dict) else {}
            missions.append({
                **base,
                "title_en": item.get("title_en") or item.get("title") or base["title_en"],
                "title_ar": item.get("title_ar") or base["title_ar"],
                "description_en": item.get("desc_en") or item.get("description_en") or base["description_en"],
                "coin_reward": _clamp_int(item.get("coin_reward"), 0, 1000, base["coin_reward"]),
                "xp_reward": _clamp_int(item.get("xp_reward"), 0, 1000, base["xp_reward"]),
            })
        return missions

    async def road_trip_roulette(self, profile: dict[str, Any]) -> dict[str, Any]:
        local = engine.road_trip_roulette(profile)
        raw = await self._remote_json("roulette", prompts.roulette_prompt(profile), max_tokens=500, temperature=0.8)
        if not (isinstance(raw, dict) and isinstance(raw.get("wheel_spin_result"), str) and raw["wheel_spin_result"]):
            return local
        itinerary = raw.get("itinerary") if isinstance(raw.get("itinerary"), list) else []
        itinerary = [step for step in itinerary if isinstance(step, str)][:5]
        ctas = raw.get("ctas") if isinstance(raw.get("ctas"), list) else []
        ctas = [cta for cta in ctas if isinstance(cta, str)]
        return {
            "wheel_spin_result": raw["wheel_spin_result"],
            "itinerary": itinerary or local["itinerary"],
            "ctas": ctas or local["ctas"],
            "reward": raw.get("reward") if isinstance(raw.get("reward"), str) else local["reward"],
        }

    async def chat(self, message: str, profile: dict[str, Any], context: Any = None) -> str:  # noqa: ANN401
        if not self.provider.is_local:
            try:
                return await self.provider.complete(prompts.chat_prompt(message, profile, context), max_tokens=200)
            except AIProviderError as e:
                logger.warning("ai_fallback", task="chat", provider=self.provider.name, error=str(e))
        return engine.chat_reply()


def get_ai_service() -> AIService:
    """FastAPI dependency."""
    return AIService()
