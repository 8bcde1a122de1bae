"""Prompt builders for the remote AI provider."""

from __future__ import annotations

import json
from typing import Any


def _profile_line(profile: dict[str, Any]) -> str:
    return (
        f"Age: {profile.get('age') or 30}, Gender: {profile.get('gender') or ''}, "
        f"Nationality: {profile.get('nationality') or ''}, Budget: {profile.get('budget') or 0} QAR/year, "
        f"First-time buyer: {'Yes' if profile.get('first_time_buyer') else 'No'}"
    )


def recommendations_prompt(profile: dict[str, Any]) -> str:
    return (
        f"Based on this user profile: {json.dumps(profile, default=str)}\n\n"
        "Recommend 3-5 personalized insurance-related missions. For each mission provide: id, type (\"mission\"), "
        "title, description, category (safe_driving|health|financial_guardian|family_protection|lifestyle), "
        "difficulty (easy|medium|hard), priority (high|medium|low), reason (1 sentence), xp_reward (int), "
        "lifescore_impact (int). Return only a JSON array."
    )


def profile_prompt(onboarding: dict[str, Any]) -> str:
    return (
        f"Generate AI profile from onboarding: {json.dumps(onboarding, default=str)}\n\n"
        "Return JSON with: risk_level (low|medium|high), health_score (0..100), family_priority (low|medium|high), "
        "financial_goals (conservative|moderate|aggressive), insurance_focus (array), "
        "ai_personality (encouraging|competitive|educational|supportive)."
    )


def scenario_prompt(category: str, scenario_text: str, profile: dict[str, Any]) -> str:
    return f"""You are an AI insurance advisor for QIC (Qatar Insurance Company) in Qatar. Analyze the following scenario and recommend insurance plans.

User Profile:
- {_profile_line(profile)}
- Vulnerabilities: {json.dumps(profile.get("vulnerabilities") or [])}
- Insurance preferences: {json.dumps(profile.get("insurance_preferences") or [])}

Scenario:
Category: {category}
Description: {scenario_text}

Requirements:
1. Only recommend plans relevant to Qatar.
2. Give each plan a relevance_score (1-10) for this category and scenario.
3. Give an overall severity_score (1-10).
4. Sort plans from most to least relevant.
5. Provide exactly 4 short "scenarios" strings, each ending with "(LifeScore impact: +N)" or "(LifeScore impact: -N)".

Return JSON:
{{
  "narrative": "2-3 sentences analyzing the scenario",
  "severity_score": 5,
  "recommended_plans": [{{"plan_id": "", "plan_name": "", "plan_type": "{category}", "relevance_score": 8,
    "description": "", "qatar_compliance": "", "estimated_premium": "", "key_features": []}}],
  "suggested_missions": [{{"id": "", "title": "", "category": "", "difficulty": "easy",
    "xp_reward": 20, "lifescore_impact": 5, "coin_reward": 10}}],
  "scenarios": ["", "", "", ""],
  "lifescore_impact": 5,
  "risk_level": "low|medium|high"
}}"""


def missions_prompt(profile: dict[str, Any]) -> str:
    return f"""You help the QIC Life insurance app generate personalized missions that drive engagement, multi-product adoption, retention and referrals.

User Profile:
- {_profile_line(profile)}
- Insurance Preferences: {", ".join(map(str, profile.get("insurance_preferences") or []))}
- Areas of Interest: {", ".join(map(str, profile.get("areas_of_interest") or []))}
- Vulnerabilities: {", ".join(map(str, profile.get("vulnerabilities") or []))}

Generate 3-5 missions. Each must have category in safe_driving, health, financial_guardian, family_protection, lifestyle;
difficulty easy|medium|hard; coin_reward easy=10, medium=20, hard=30; xp_reward 50-200; lifescore_impact 5-20.

Return a JSON array of missions, each with: title_en, title_ar, description_en, description_ar, category, difficulty,
xp_reward, lifescore_impact, coin_reward."""


def mission_steps_prompt(mission: dict[str, Any], profile: dict[str, Any]) -> str:
    return f"""Generate exactly 3 actionable steps for this insurance mission:
Mission: {mission.get("title_en")}
Category: {mission.get("category")}
Difficulty: {mission.get("difficulty")}

User context: {_profile_line(profile)}
Insurance preferences: {", ".join(map(str, profile.get("insurance_preferences") or []))}

Steps must be specific, relevant to the category and progressive.
Return a JSON array with exactly 3 objects, each with: step_number (1-3), title, description."""


def daily_brief_prompt(profile: dict[str, Any]) -> str:
    return (
        f"You are QIC AI, a warm Qatari insurance guide. Use name {profile.get('name') or 'Friend'} and "
        f"{_profile_line(profile)} to personalize. Write a 1-sentence hook (12 words max, bilingual Arabic/English, "
        "falcon or date palm motif, tied to vehicle/family safety). "
        'Return JSON: {"daily_brief": "..."}'
    )


def adaptive_missions_prompt(profile: dict[str, Any]) -> str:
    return f"""You are QIC AI, a warm Qatari insurance guide focused on safety, family, and growth.
User: {profile.get("name") or "Friend"}; {_profile_line(profile)}

Generate exactly 3 tiered missions:
Easy (no policy requirement): ~50 coins + falcon badge
Medium (1 policy requirement): ~150 coins + date palm badge
Hard (2+ policies): ~300 coins + family badge

Return JSON:
{{"missions": [
  {{"level": "easy", "title_en": "", "title_ar": "", "desc_en": "", "desc_ar": "", "coin_reward": 50, "xp_reward": 100, "badge": "falcon"}},
  {{"level": "medium", "coin_reward": 150, "xp_reward": 150, "badge": "date_palm"}},
  {{"level": "hard", "coin_reward": 300, "xp_reward": 200, "badge": "family"}}
]}}"""


def chat_prompt(message: str, profile: dict[str, Any], context: Any = None) -> str:  # noqa: ANN401
    return (
        "You are QIC Life's friendly insurance assistant. Answer in at most 2 sentences and suggest a mission "
        "when relevant.\n"
        f"User profile: {json.dumps(profile, default=str)}\n"
        f"Context: {json.dumps(context, default=str)}\n"
        f"User: {message}"
    )


def roulette_prompt(profile: dict[str, Any]) -> str:
    return f"""You are QIC AI, expert in safe GCC adventures. Personalize for {profile.get("name") or "Friend"}; {_profile_line(profile)}

Generate Road-Trip Roulette content for one spin as JSON:
{{
  "wheel_spin_result": "Falcon wheel outcome, e.g. Doha Desert Dash",
  "itinerary": ["3-5 steps of about 10 words, local spots tied to insurance or roadside help, 48 hours total"],
  "ctas": ["One-tap action, e.g. Book roadside → 100 Coins"],
  "reward": "QIC Coins + cultural proverb (Arabic/English)"
}}

Focus: vehicle safety, family fun. Output ONLY JSON. Max 100 words total."""
