"""
Dramatiq Background Worker
Runs bol.com sync passes queued via /bol/sync/enqueue

Usage:
    dramatiq worker -p 2 -t 2

Deployment:
    - Type: Background Worker
    - Start Command: dramatiq worker -p 2 -t 2
    - Environment: Same as main app (REDIS_URL, SUPABASE_URL, etc.)
"""
import logging

from bolsync.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

if settings.sentry_dsn:
    try:
        import sentry_sdk
        from sentry_sdk.integrations.logging import LoggingIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ]
        )
        logger.info("✅ Sentry initialized in worker")
    except Exception as e:
        logger.warning(f"⚠️  Failed to initialize Sentry in worker: {e}")
else:
    logger.info("ℹ️  Sentry not configured (SENTRY_DSN not set)")

# Import tasks (this registers them with Dramatiq)
try:
    from bolsync.services.jobs.broker import broker
    from bolsync.services.jobs.tasks import (
        sync_main_task,
        sync_complete_task,
        sync_extended_task
    )

    logger.info("✅ bolsync worker initialized")
    logger.info("📋 Registered tasks: sync_main, sync_complete, sync_extended")

except Exception as e:
    logger.error(f"❌ Failed to initialize worker: {e}", exc_info=True)
    raise
