"""Mission seed data: 25 missions, five per category."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from qiclife.db.models import Mission

logger = logging.getLogger(__name__)

_FIELDS = ("id", "category", "title_en", "title_ar", "description_en", "difficulty",
           "xp_reward", "lifescore_impact", "coin_reward")

_ROWS: list[tuple] = [
    # Safe driving
    ("safe-driver-7-day", "safe_driving", "7-Day Safe Driver Challenge", "تحدي السائق الآمن لمدة 7 أيام",
     "Complete 7 consecutive days of safe driving with no violations", "medium", 75, 15, 50),
    ("speed-limit-master", "safe_driving", "Speed Limit Master", "سيد حدود السرعة",
     "Maintain speed limits for 5 consecutive trips", "easy", 40, 8, 25),
    ("defensive-driving-expert", "safe_driving", "Defensive Driving Expert", "خبير القيادة الدفاعية",
     "Practice defensive driving techniques for 3 days", "hard", 100, 20, 75),
    ("night-driving-safety", "safe_driving", "Night Driving Safety", "سلامة القيادة الليلية",
     "Complete 5 night drives with zero incidents", "medium", 60, 12, 40),
    ("eco-friendly-commute", "safe_driving", "Eco-Friendly Commute", "تنقل صديق للبيئة",
     "Use eco-friendly driving habits for 1 week", "easy", 35, 7, 20),
    # Health
    ("steps-10k-daily", "health", "10K Steps Daily", "10 آلاف خطوة يومياً",
     "Walk 10,000 steps every day for 7 days", "medium", 70, 14, 45),
    ("hydration-champion", "health", "Hydration Champion", "بطل الترطيب",
     "Drink 8 glasses of water daily for 5 days", "easy", 30, 6, 20),
    ("sleep-quality-master", "health", "Sleep Quality Master", "سيد جودة النوم",
     "Maintain 7-8 hours of quality sleep for 1 week", "medium", 65, 13, 40),
    ("stress-management", "health", "Stress Management", "إدارة الإجهاد",
     "Practice stress-relief techniques for 5 days", "hard", 90, 18, 60),
    ("nutrition-tracker", "health", "Nutrition Tracker", "متتبع التغذية",
     "Log healthy meals for 7 consecutive days", "medium", 55, 11, 35),
    # Financial guardian
    ("budget-review-master", "financial_guardian", "Budget Review Master", "سيد مراجعة الميزانية",
     "Review and optimize your monthly budget", "medium", 80, 16, 50),
    ("emergency-fund-builder", "financial_guardian", "Emergency Fund Builder", "باني صندوق الطوارئ",
     "Set up emergency fund savings plan", "hard", 100, 20, 75),
    ("investment-research", "financial_guardian", "Investment Research", "بحث الاستثمار",
     "Research and compare investment options", "hard", 85, 17, 60),
    ("debt-reduction-plan", "financial_guardian", "Debt Reduction Plan", "خطة تقليل الديون",
     "Create and follow debt reduction strategy", "medium", 70, 14, 45),
    ("financial-goal-setting", "financial_guardian", "Financial Goal Setting", "تحديد الأهداف المالية",
     "Set and track 3 financial goals", "easy", 45, 9, 30),
    # Family protection
    ("family-safety-check", "family_protection", "Family Safety Check", "فحص سلامة العائلة",
     "Conduct home safety assessment", "medium", 60, 12, 40),
    ("emergency-contact-update", "family_protection", "Emergency Contact Update", "تحديث جهات الاتصال الطارئة",
     "Update emergency contacts for all family members", "easy", 25, 5, 15),
    ("family-health-records", "family_protection", "Family Health Records", "سجلات صحة العائلة",
     "Organize family health records and documents", "medium", 50, 10, 35),
    ("child-safety-education", "family_protection", "Child Safety Education", "تعليم سلامة الأطفال",
     "Teach children about safety rules and procedures", "easy", 35, 7, 25),
    ("family-emergency-plan", "family_protection", "Family Emergency Plan", "خطة طوارئ العائلة",
     "Create comprehensive family emergency plan", "hard", 75, 15, 55),
    # Lifestyle
    ("digital-detox-challenge", "lifestyle", "Digital Detox Challenge", "تحدي إزالة السموم الرقمية",
     "Reduce screen time by 50% for 3 days", "medium", 55, 11, 35),
    ("learning-new-skill", "lifestyle", "Learning New Skill", "تعلم مهارة جديدة",
     "Spend 1 hour daily learning a new skill", "hard", 80, 16, 55),
    ("community-service", "lifestyle", "Community Service", "خدمة المجتمع",
     "Volunteer for community service for 4 hours", "medium", 70, 14, 45),
    ("cultural-exploration", "lifestyle", "Cultural Exploration", "استكشاف ثقافي",
     "Visit a cultural site or museum", "easy", 30, 6, 20),
    ("mindfulness-practice", "lifestyle", "Mindfulness Practice", "ممارسة اليقظة",
     "Practice mindfulness meditation for 5 days", "medium", 50, 10, 30),
]

# Missions friends can take on together
COLLABORATIVE = {"family-emergency-plan": 6, "community-service": 10, "steps-10k-daily": 4}

MISSION_SEED_DATA: list[dict] = [
    {
        **dict(zip(_FIELDS, row)),
        "is_collaborative": row[0] in COLLABORATIVE,
        "max_participants": COLLABORATIVE.get(row[0]),
    }
    for row in _ROWS
]


async def seed_missions(db: AsyncSession) -> int:
    """Upsert the catalog missions by id. Returns the number seeded."""
    for data in MISSION_SEED_DATA:
        await db.merge(Mission(**data))
    await db.commit()
    logger.info("Seeded %d missions", len(MISSION_SEED_DATA))
    return len(MISSION_SEED_DATA)
