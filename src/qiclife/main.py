"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from qiclife.achievements.router import router as achievements_router
from qiclife.achievements.seed import seed_achievements
from qiclife.ai.router import router as ai_router
from qiclife.analytics.router import router as analytics_router
from qiclife.config import get_settings
from qiclife.database import close_db, create_all, get_session, init_db
from qiclife.gamification.router import router as gamification_router
from qiclife.health.router import router as health_router
from qiclife.middleware import setup_middleware
from qiclife.missions.router import router as missions_router
from qiclife.missions.seed import seed_missions
from qiclife.multiproduct.router import router as multiproduct_router
from qiclife.onboarding.router import router as onboarding_router
from qiclife.play.router import router as play_router
from qiclife.products.router import router as products_router
from qiclife.profile.router import router as profile_router
from qiclife.quotes.router import router as quotes_router
from qiclife.redis_client import close_redis, init_redis
from qiclife.referrals.router import router as referrals_router
from qiclife.rewards.router import router as rewards_router
from qiclife.rewards.seed import seed_rewards
from qiclife.scenarios.router import router as scenarios_router
from qiclife.skills.router import router as skills_router
from qiclife.social.router import router as social_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    if settings.database_url.startswith("sqlite"):
        await create_all()

    # Seed catalog missions, rewards and achievement definitions (idempotent)
    try:
        async for db in get_session():
            await seed_missions(db)
            await seed_rewards(db)
            await seed_achievements(db)
            break
    except Exception:
        logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="QIC Life API",
        description="Backend API for QIC Life, gamified insurance engagement",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router)
    app.include_router(profile_router)
    app.include_router(onboarding_router)
    app.include_router(missions_router)
    app.include_router(rewards_router)
    app.include_router(achievements_router)
    app.include_router(gamification_router)
    app.include_router(ai_router)
    app.include_router(scenarios_router)
    app.include_router(products_router)
    app.include_router(referrals_router)
    app.include_router(analytics_router)
    app.include_router(play_router)
    app.include_router(quotes_router)
    app.include_router(social_router)
    app.include_router(skills_router)
    app.include_router(multiproduct_router)

    return app


app = create_app()
