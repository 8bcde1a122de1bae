"""Deterministic AI rules.

Everything here is pure and offline. It is the whole behaviour of the
``local`` provider and the fallback whenever a remote provider fails or
returns unusable output.
"""

from __future__ import annotations

import json
import random
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Scenario prediction
# ---------------------------------------------------------------------------

DIET_DELTA = {"excellent": 8, "good": 5, "fair": 2, "poor": -4}

CATEGORY_ALIASES = {
    "auto": "car",
    "vehicle": "car",
    "motor": "car",
    "safe_driving": "car",
    "medical": "health",
    "umrah": "travel",
    "trip": "travel",
    "property": "home",
    "family_protection": "home",
}


def _num(value: Any) -> float:  # noqa: ANN401
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def normalize_category(value: Any, default: str = "car") -> str:  # noqa: ANN401
    category = str(value or "").strip().lower()
    if not category:
        return default
    return CATEGORY_ALIASES.get(category, category)


def normalize_inputs(inputs: dict[str, Any] | None) -> dict[str, Any]:
    inputs = inputs or {}
    return {
        "walk_minutes": _num(inputs.get("walk_minutes")),
        "diet_quality": str(inputs.get("diet_quality") or "fair"),
        "commute_distance": _num(inputs.get("commute_distance")),
        "driving_hours": _num(inputs.get("driving_hours")),
        "seatbelt_usage": str(inputs.get("seatbelt_usage") or "often"),
    }


def lifescore_delta(n: dict[str, Any]) -> int:
    """Expected LifeScore change, clamped to 1..20."""
    delta = 0
    if n["walk_minutes"] > 0:
        delta += min(10, int(n["walk_minutes"] // 10))
    delta += DIET_DELTA.get(n["diet_quality"], 2)
    if n["commute_distance"] > 30 or n["driving_hours"] > 2:
        delta -= 3
    if n["seatbelt_usage"] == "always":
        delta += 3
    elif n["seatbelt_usage"] == "rarely":
        delta -= 4
    return max(1, min(20, delta))


def xp_reward(n: dict[str, Any], delta: int) -> int:
    penalty = 5 if n["seatbelt_usage"] == "rarely" else 0
    return max(10, min(100, 20 + delta * 3 - penalty))


def risk_level(n: dict[str, Any]) -> str:
    risk = 0
    if n["commute_distance"] > 25:
        risk += 1
    if n["driving_hours"] > 2:
        risk += 1
    if n["seatbelt_usage"] != "always":
        risk += 1
    if n["walk_minutes"] >= 30 and n["diet_quality"] in ("good", "excellent"):
        risk -= 1
    if risk <= 0:
        return "low"
    return "medium" if risk == 1 else "high"


def narrative(n: dict[str, Any], delta: int, risk: str) -> str:
    parts = []
    if n["walk_minutes"] >= 30:
        parts.append("Adding daily walking improves cardiovascular health.")
    if n["diet_quality"] in ("excellent", "good"):
        parts.append("Your diet supports sustained energy and recovery.")
    if n["commute_distance"] > 25 or n["driving_hours"] > 2:
        parts.append("Long commutes increase incident risk; consider route or timing changes.")
    if n["seatbelt_usage"] != "always":
        parts.append("Always wearing a seatbelt significantly reduces injury risk.")
    parts.append(f"Overall impact preview: LifeScore +{delta}, Risk {risk}.")
    return " ".join(parts)


def suggested_missions(n: dict[str, Any], delta: int, xp: int) -> list[dict[str, Any]]:
    missions: list[dict[str, Any]] = []
    if n["walk_minutes"] < 30:
        missions.append({
            "id": "ai-walk-30", "title": "Walk 30 minutes today", "category": "health", "difficulty": "easy",
            "xp_reward": max(20, xp - 10), "lifescore_impact": max(3, delta // 2), "ai_generated": True,
        })
    if n["diet_quality"] != "excellent":
        missions.append({
            "id": "ai-meal-plan", "title": "Plan 3 balanced meals", "category": "health", "difficulty": "medium",
            "xp_reward": xp, "lifescore_impact": max(4, delta // 2), "ai_generated": True,
        })
    if n["seatbelt_usage"] != "always":
        missions.append({
            "id": "ai-seatbelt", "title": "Seatbelt Habit Challenge", "category": "safe_driving",
            "difficulty": "easy", "xp_reward": 25, "lifescore_impact": 5, "ai_generated": True,
        })
    if not missions:
        missions.append({
            "id": "ai-checkup", "title": "Schedule a health check", "category": "health", "difficulty": "easy",
            "xp_reward": 30, "lifescore_impact": 4, "ai_generated": True,
        })
    return missions


def severity_score(risk: str, delta: int) -> int:
    base = {"high": 8, "medium": 5}.get(risk, 3)
    bump = 2 if abs(delta) > 20 else 1 if abs(delta) > 10 else 0
    return max(1, min(10, base + bump))


@lru_cache(maxsize=1)
def load_plan_catalog() -> tuple[dict[str, Any], ...]:
    """Static QIC plan catalog shipped with the package."""
    with Path(__file__).with_name("plans.json").open(encoding="utf-8") as fh:
        return tuple(json.load(fh)["plans"])


def catalog_plan(plan_id: str | None = None, plan_name: str | None = None) -> dict[str, Any] | None:
    for plan in load_plan_catalog():
        if plan_id and plan["plan_id"] == plan_id:
            return plan
        if plan_name and plan["plan_name"].lower() == plan_name.lower():
            return plan
    return None


def _public_plan(plan: dict[str, Any], relevance: int) -> dict[str, Any]:
    out = {k: v for k, v in plan.items() if k not in ("base_relevance", "first_time_buyer_bonus")}
    out["key_features"] = list(plan.get("key_features", []))
    out["standard_coverages"] = list(plan.get("standard_coverages", []))
    out["relevance_score"] = max(1, min(10, relevance))
    return out


def recommended_plans(category: str, profile: dict[str, Any] | None = None, limit: int = 5) -> list[dict[str, Any]]:
    """Catalog plans for ``category`` scored 1..10 and sorted, most relevant first."""
    profile = profile or {}
    first_time = bool(profile.get("first_time_buyer"))
    plans = [
        _public_plan(plan, plan["base_relevance"] + (plan.get("first_time_buyer_bonus", 0) if first_time else 0))
        for plan in load_plan_catalog()
        if plan["plan_type"] == category
    ]
    plans.sort(key=lambda p: p["relevance_score"], reverse=True)
    return plans[:limit]


def scenario_outcomes(category: str, delta: int, risk: str) -> list[str]:
    """Four what-if outcomes, each with its LifeScore impact."""
    covered = max(1, delta)
    return [
        f"You stay insured and follow the plan: {category} risk managed (LifeScore impact: +{covered})",
        f"You add recommended coverage now: fewer out-of-pocket costs (LifeScore impact: +{covered + 2})",
        f"You delay action for 3 months: {risk} risk remains (LifeScore impact: +0)",
        f"An incident happens without cover: financial exposure (LifeScore impact: -{max(3, covered // 2)})",
    ]


def scenario_prediction(inputs: dict[str, Any] | None, category: str | None = None,
                        profile: dict[str, Any] | None = None) -> dict[str, Any]:
    """Explainable prediction from lifestyle inputs."""
    n = normalize_inputs(inputs)
    delta = lifescore_delta(n)
    xp = xp_reward(n, delta)
    risk = risk_level(n)
    category = normalize_category(category or (inputs or {}).get("category") or (inputs or {}).get("type"))
    return {
        "lifescore_impact": delta,
        "xp_reward": xp,
        "risk_level": risk,
        "narrative": narrative(n, delta, risk),
        "suggested_missions": suggested_missions(n, delta, xp),
        "severity_score": severity_score(risk, delta),
        "recommended_plans": recommended_plans(category, profile),
    }


# ---------------------------------------------------------------------------
# Profiles and recommendations
# ---------------------------------------------------------------------------

DIET_HEALTH = {"excellent": 20, "good": 10, "fair": 0, "poor": -10}
ROUTINE_HEALTH = {"active": 15, "moderate": 5, "sedentary": -5}


def health_score(step2: dict[str, Any] | None) -> int:
    if not step2:
        return 50
    score = 50 + int(_num(step2.get("exercise_frequency"))) * 5
    score += DIET_HEALTH.get(step2.get("diet_quality"), 0)
    score += ROUTINE_HEALTH.get(step2.get("daily_routine"), 0)
    return max(0, min(100, score))


def local_profile(onboarding: dict[str, Any]) -> dict[str, Any]:
    step1 = onboarding.get("step1") or {}
    step3 = onboarding.get("step3") or {}
    step4 = onboarding.get("step4") or {}
    step5 = onboarding.get("step5") or {}
    step6 = onboarding.get("step6") or {}
    return {
        "risk_level": step1.get("risk_tolerance") or "medium",
        "health_score": health_score(onboarding.get("step2")),
        "family_priority": "high" if _num(step3.get("dependents")) > 0 else "low",
        "financial_goals": step4.get("investment_risk") or "moderate",
        "insurance_focus": step5.get("coverage_types") or ["health"],
        "integrations": step6.get("integrations") or [],
        "ai_personality": "encouraging",
        "notification_preferences": {"missions": True, "achievements": True, "reminders": True, "social": False},
        "personalized_tips": [
            "Focus on building healthy habits",
            "Consider family protection options",
            "Regular health checkups are important",
        ],
    }


def default_recommendations(profile: dict[str, Any]) -> list[dict[str, Any]]:
    recs = [
        {
            "id": "rec-1", "type": "mission", "title": "Daily Health Check",
            "description": "Complete your daily health assessment", "priority": "high",
            "reason": "Based on your health focus", "xp_reward": 50, "lifescore_impact": 10,
        },
        {
            "id": "rec-2", "type": "mission", "title": "Safe Driving Challenge",
            "description": "Maintain safe driving habits for a week", "priority": "medium",
            "reason": "Improve your driving score", "xp_reward": 75, "lifescore_impact": 15,
        },
    ]
    if "QIC Health Portal" in (profile.get("integrations") or []):
        recs.append({
            "id": "rec-3", "type": "mission", "title": "Health Portal Sync",
            "description": "Sync your health data with QIC Health Portal", "priority": "high",
            "reason": "You have QIC Health Portal integration", "xp_reward": 100, "lifescore_impact": 20,
        })
    return recs


def local_recommendations(profile: dict[str, Any]) -> list[dict[str, Any]]:
    """Rule-based recommendations from profile hints."""
    integrations = profile.get("integrations") or (profile.get("step6") or {}).get("integrations") or []
    if "driving_hours" in profile:
        driving_hours = _num(profile["driving_hours"])
    else:
        driving_hours = 3 if (profile.get("step1") or {}).get("driving_habits") == "aggressive" else 1
    policy_review_days = _num(profile.get("policy_review_days", 120))
    lifescore = _num(profile.get("lifescore", 50))

    recs: list[dict[str, Any]] = []
    if lifescore < 50:
        recs.append({
            "id": "rec-health-1", "type": "mission", "title": "Hydration Habit",
            "description": "Drink 8 glasses of water", "priority": "high", "xp_reward": 30, "lifescore_impact": 6,
        })
    if driving_hours > 2:
        recs.append({
            "id": "rec-drive-1", "type": "mission", "title": "Safe Driving Week",
            "description": "Maintain safe driving for 7 days", "priority": "medium",
            "xp_reward": 60, "lifescore_impact": 8,
        })
    if policy_review_days > 90:
        recs.append({
            "id": "rec-policy-1", "type": "mission", "title": "Policy Review",
            "description": "Review your policy details", "priority": "medium", "xp_reward": 20, "lifescore_impact": 3,
        })
    if "QIC Health Portal" in integrations:
        recs.append({
            "id": "rec-sync-1", "type": "mission", "title": "Sync Health Data",
            "description": "Sync your health data for better insights", "priority": "high",
            "xp_reward": 40, "lifescore_impact": 7,
        })
    return recs or default_recommendations(profile)


def insights(profile: dict[str, Any], lifescore: int, current_streak: int, completed_missions: int) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    if lifescore < 50:
        items.append({
            "type": "lifescore", "priority": "high", "title": "Boost Your LifeScore",
            "message": "Your LifeScore is below 50. Complete health missions to improve it.",
            "action": "Complete health missions",
        })
    if current_streak == 0:
        items.append({
            "type": "streak", "priority": "medium", "title": "Start Your Streak",
            "message": "Complete a mission today to start building your streak.", "action": "Start a mission",
        })
    if "QIC Health Portal" in (profile.get("integrations") or []):
        items.append({
            "type": "integration", "priority": "low", "title": "Sync Health Data",
            "message": "Connect your QIC Health Portal to get personalized recommendations.", "action": "Sync data",
        })
    if completed_missions == 0:
        items.append({
            "type": "mission", "priority": "high", "title": "Complete Your First Mission",
            "message": "Start your journey by completing your first mission.", "action": "Browse missions",
        })
    return items


CHAT_RESPONSES = (
    "I can help you find the perfect mission to boost your LifeScore!",
    "Based on your profile, I recommend focusing on health missions.",
    "Great job on completing your recent missions! Keep it up!",
    "Your streak is looking good! Don't forget to complete a mission today.",
    "I notice you haven't synced your health data yet. Would you like help with that?",
)


def chat_reply() -> str:
    return random.choice(CHAT_RESPONSES)  # noqa: S311


# ---------------------------------------------------------------------------
# Missions
# ---------------------------------------------------------------------------

COIN_BY_DIFFICULTY = {"easy": 10, "medium": 20, "hard": 30}


def local_missions_for_user(profile: dict[str, Any], seed: str) -> list[dict[str, Any]]:
    """Personalised missions from insurance preferences, interests and vulnerabilities.

    ``seed`` makes generated ids unique per call.
    """
    prefs = [str(p).lower() for p in profile.get("insurance_preferences") or []]
    interests = [str(a).lower() for a in profile.get("areas_of_interest") or []]
    vulnerabilities = [str(v).lower() for v in profile.get("vulnerabilities") or []]
    first_time = bool(profile.get("first_time_buyer"))
    age = int(_num(profile.get("age")) or 30)
    gender = str(profile.get("gender") or "").lower()

    missions: list[dict[str, Any]] = []
    if "car" in prefs or "motorcycle" in prefs:
        missions.append({
            "id": f"ai-{seed}-car",
            "title_en": "Get Your First Car Insurance - 3 Months FREE" if first_time else "Safe Driving Challenge",
            "title_ar": "احصل على تأمينك الأول" if first_time else "تحدي القيادة الآمنة",
            "description_en": (
                "Complete your first car insurance purchase and get 3 months FREE coverage as a first-time buyer!"
                if first_time
                else "Maintain safe driving habits for 7 consecutive days. Track your trips and avoid risky behaviors."
            ),
            "category": "safe_driving",
            "difficulty": "easy" if first_time else "medium",
            "xp_reward": 100 if first_time else 120,
            "lifescore_impact": 15 if first_time else 12,
            "coin_reward": 10 if first_time else 20,
        })
    if "health" in prefs or (age >= 50 and gender == "female"):
        missions.append({
            "id": f"ai-{seed}-health",
            "title_en": "Health Check Mission",
            "title_ar": "مهمة الفحص الصحي",
            "description_en": "Schedule and complete a preventive health checkup. Upload results to earn rewards.",
            "category": "health",
            "difficulty": "easy" if age >= 50 else "medium",
            "xp_reward": 80 if age >= 50 else 100,
            "lifescore_impact": 12 if age >= 50 else 10,
            "coin_reward": 10 if age >= 50 else 20,
        })
    if "home" in prefs or any("electronics" in v for v in vulnerabilities):
        missions.append({
            "id": f"ai-{seed}-home",
            "title_en": "Home Protection Review",
            "title_ar": "مراجعة حماية المنزل",
            "description_en": "Review your home insurance coverage and identify gaps. Get personalized recommendations.",
            "category": "family_protection",
            "difficulty": "medium",
            "xp_reward": 90,
            "lifescore_impact": 8,
            "coin_reward": 20,
        })
    if "travel" in interests or "travel" in prefs or any("travel" in v for v in vulnerabilities):
        missions.append({
            "id": f"ai-{seed}-travel",
            "title_en": "Travel Insurance Explorer",
            "title_ar": "مستكشف تأمين السفر",
            "description_en": "Explore travel insurance options for your next trip. Compare plans and find the best coverage.",
            "category": "lifestyle",
            "difficulty": "easy",
            "xp_reward": 60,
            "lifescore_impact": 6,
            "coin_reward": 10,
        })
    if not missions:
        missions.append({
            "id": f"ai-{seed}-default",
            "title_en": "Complete Your Profile",
            "title_ar": "أكمل ملفك الشخصي",
            "description_en": "Add more details to your profile to unlock personalized missions.",
            "category": "lifestyle",
            "difficulty": "easy",
            "xp_reward": 40,
            "lifescore_impact": 5,
            "coin_reward": 10,
        })
    return missions[:5]


MISSION_STEP_TEMPLATES: dict[str, list[tuple[str, str]]] = {
    "safe_driving": [
        ("Review Current Coverage", "Log into your QIC account and review your current car insurance policy details and coverage limits."),
        ("Safe Driving Practice", "Practice safe driving for 3 consecutive days: maintain speed limits, use seatbelt always, avoid distractions."),
        ("Complete Safety Assessment", "Complete the QIC Safe Driving Assessment quiz and review personalized recommendations."),
    ],
    "health": [
        ("Schedule Health Checkup", "Use QIC Health Portal to schedule your preventive health checkup appointment."),
        ("Attend Appointment", "Attend your scheduled health checkup and collect any test results or reports."),
        ("Upload Results", "Upload your health checkup results to the QIC Health Portal to complete the mission and earn rewards."),
    ],
    "family_protection": [
        ("Review Family Coverage", "Review your current family insurance coverage and identify any gaps in protection."),
        ("Get Recommendations", "Use the QIC Family Protection tool to get personalized coverage recommendations for your family members."),
        ("Update Policy", "Contact QIC to update your policy or add additional coverage based on recommendations."),
    ],
    "financial_guardian": [
        ("Financial Assessment", "Complete the QIC Financial Health Assessment to understand your current financial protection level."),
        ("Review Life Insurance", "Review your life insurance coverage and calculate if it meets your family's future needs."),
        ("Plan Improvement", "Create a plan to improve your financial protection, whether through policy updates or additional coverage."),
    ],
    "lifestyle": [
        ("Explore Options", "Browse QIC insurance products and services relevant to your interests and lifestyle."),
        ("Compare Plans", "Compare at least 2 different insurance plans that match your needs and budget."),
        ("Take Action", "Complete an action: either get a quote, schedule a consultation, or enroll in a new insurance product."),
    ],
}


def mission_steps(category: str | None) -> list[dict[str, Any]]:
    template = MISSION_STEP_TEMPLATES.get(category or "", MISSION_STEP_TEMPLATES["health"])
    return [
        {"step_number": i, "title": title, "description": description}
        for i, (title, description) in enumerate(template, start=1)
    ]


def _has_car(profile: dict[str, Any]) -> bool:
    return any("car" in str(p).lower() for p in profile.get("insurance_preferences") or [])


def daily_brief(profile: dict[str, Any]) -> str:
    name = profile.get("name") or "Friend"
    if _has_car(profile):
        return f"Marhaba {name}! Ready to secure your journey? Your vehicle deserves the best protection."
    return f"Marhaba {name}! Welcome back to QIC Life. Let's build your safety net together."


ADAPTIVE_TIERS: dict[str, dict[str, Any]] = {
    "easy": {"coin_reward": 50, "xp_reward": 100, "lifescore_impact": 5, "badge": "falcon", "category": "safe_driving"},
    "medium": {"coin_reward": 150, "xp_reward": 150, "lifescore_impact": 10, "badge": "date_palm", "category": "family_protection"},
    "hard": {"coin_reward": 300, "xp_reward": 200, "lifescore_impact": 15, "badge": "family", "category": "lifestyle"},
}


def adaptive_missions(profile: dict[str, Any], user_id: str, today: date) -> list[dict[str, Any]]:
    """Three daily missions, one per difficulty tier."""
    first_time = bool(profile.get("first_time_buyer"))
    stamp = f"{user_id[:8]}-{today.isoformat()}"
    copy = {
        "easy": (
            "Get Your First Car Insurance - 3 Months FREE" if first_time else "Renew Car Liability in 2 Mins",
            "احصل على أول تأمين سيارات" if first_time else "تجديد تأمين السيارة في دقيقتين",
            "Complete your first car insurance purchase and get 3 months FREE coverage!"
            if first_time else "Quick renewal: 50 QIC Coins + falcon badge",
        ),
        "medium": (
            "Add Home Insurance for Eid Gatherings",
            "أضف تأمين المنزل لتجمعات العيد",
            "Protect your majlis: 150 Coins + date palm growth",
        ),
        "hard": (
            "Refer Relative for Travel Cover",
            "أحِل قريبًا لتأمين السفر",
            "Share QIC with family: 300 Coins + hospitality leaderboard spot",
        ),
    }
    missions = []
    for level, tier in ADAPTIVE_TIERS.items():
        title_en, title_ar, description_en = copy[level]
        missions.append({
            "id": f"daily-{level}-{stamp}",
            "title_en": title_en,
            "title_ar": title_ar,
            "description_en": description_en,
            "difficulty": level,
            "recurrence_type": "daily",
            **tier,
        })
    return missions


# ---------------------------------------------------------------------------
# Road-Trip Roulette
# ---------------------------------------------------------------------------

ROULETTE_DESTINATIONS = (
    "Doha Desert Dash",
    "Souq Waqif Wander",
    "Al Zubarah Heritage Trip",
    "Katara Cultural Journey",
    "Corniche Coastal Cruise",
)

ROULETTE_CTAS = (
    "Book Roadside Assistance → 100 Coins",
    "Add Travel Cover → Multi-product badge + 150 Coins",
    "Share Trip with Family → Referral rewards",
)

ROULETTE_REWARD = '100 QIC Coins + "Travel safely, return joyfully - سافر بأمان، عُد بفرح"'


def road_trip_roulette(profile: dict[str, Any], rng: random.Random | None = None) -> dict[str, Any]:
    """One wheel spin: a destination and a five-stop itinerary."""
    first_stop = (
        "Fuel up at Al Sadd station → Check tire pressure and comprehensive insurance coverage"
        if _has_car(profile)
        else "Start at Souq Waqif → Explore traditional Qatari crafts and culture"
    )
    return {
        "wheel_spin_result": (rng or random).choice(ROULETTE_DESTINATIONS),
        "itinerary": [
            first_stop,
            "Visit Katara Cultural Village → Family photo opportunity at iconic amphitheater",
            "Lunch at The Pearl-Qatar → Waterfront dining with family-friendly options",
            "Return journey planning → Ensure travel insurance covers family members",
            "Arrive home safely → Review QIC multi-product bundle for next adventure",
        ],
        "ctas": list(ROULETTE_CTAS),
        "reward": ROULETTE_REWARD,
    }
