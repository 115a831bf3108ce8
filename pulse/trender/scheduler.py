"""
Cron scheduling for the news card workflow.

Uses APScheduler to run, in UTC:
- The autonomous cycle (every 30 minutes by default)
- The legacy single-trend generation (every 2 hours by default)
"""

from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from pulse.core.logging import get_logger
from pulse.core.settings import Settings, get_settings
from pulse.trender.pipeline import NewsPipeline, generate_news_article, run_autonomous_processing

logger = get_logger(__name__)

AUTONOMOUS_JOB_ID = 'autonomous_processing'
LEGACY_JOB_ID = 'legacy_generation'


def create_scheduler(pipeline_factory: Optional[Callable[[], NewsPipeline]] = None,
                     settings: Optional[Settings] = None) -> AsyncIOScheduler:
    """
    Build a scheduler with the autonomous and legacy jobs registered.

    Args:
        pipeline_factory: Returns the pipeline used by each run; without one,
            every run builds and closes its own
        settings: Cron expressions, defaults to the process settings

    Returns:
        A scheduler that is not started yet
    """
    settings = settings or get_settings()
    scheduler = AsyncIOScheduler(timezone='UTC')

    async def autonomous_job():
        logger.info("Autonomous processing cron job triggered")
        try:
            result = await run_autonomous_processing(pipeline_factory() if pipeline_factory else None)
            logger.info("Autonomous cron job finished", extra=result.to_dict())
        except Exception as e:
            logger.error(f"Autonomous processing cron job failed: {e}", exc_info=True)

    async def legacy_job():
        logger.info("Legacy cron job triggered - starting news generation")
        try:
            await generate_news_article(pipeline_factory() if pipeline_factory else None)
        except Exception as e:
            logger.error(f"Legacy cron job failed: {e}", exc_info=True)

    scheduler.add_job(
        autonomous_job,
        CronTrigger.from_crontab(settings.autonomous_cron, timezone='UTC'),
        id=AUTONOMOUS_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        legacy_job,
        CronTrigger.from_crontab(settings.cron_schedule, timezone='UTC'),
        id=LEGACY_JOB_ID,
        max_instances=1,
        coalesce=True,
    )

    logger.info("Scheduler initialized with jobs:")
    for job in scheduler.get_jobs():
        logger.info(f"  - {job.id}: {job.trigger}")

    return scheduler
