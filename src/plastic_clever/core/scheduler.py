"""
Background Job Scheduler

Scheduled task execution using APScheduler's AsyncIOScheduler, started and
stopped from the FastAPI lifespan.

- Jobs are registered (with their trigger) before or after the scheduler
  starts; registrations made before start are added on start.
- Failed jobs are logged and never crash the scheduler.
- Any registered job can be triggered manually for testing.
"""

import logging
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Coroutine[Any, Any, Any]]

_scheduler: AsyncIOScheduler | None = None

# job_id -> (func, trigger)
_job_registry: dict[str, tuple[JobFunc, BaseTrigger]] = {}


class SchedulerConfig:
    """Configuration for the background scheduler."""

    TIMEZONE = "UTC"

    JOB_DEFAULTS = {
        "coalesce": True,
        "max_instances": 1,
        "misfire_grace_time": 60 * 5,
    }


def _job_listener(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.info(f"Job {event.job_id} executed successfully at {datetime.now(UTC).isoformat()}")


def _add_to_scheduler(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    assert _scheduler is not None
    _scheduler.add_job(func, trigger=trigger, id=job_id, replace_existing=True)
    logger.info(f"Scheduled job: {job_id}")


async def start_scheduler() -> AsyncIOScheduler:
    """
    Create and start the scheduler, adding every job registered so far.

    Returns:
        The running scheduler instance
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running, returning existing instance")
        return _scheduler

    logger.info("Initializing background job scheduler...")
    _scheduler = AsyncIOScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    for job_id, (func, trigger) in _job_registry.items():
        _add_to_scheduler(job_id, func, trigger)

    _scheduler.start()
    logger.info(f"Background job scheduler started with {len(_job_registry)} job(s)")
    return _scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler, waiting for running jobs to finish."""
    global _scheduler

    if _scheduler is None or not _scheduler.running:
        logger.debug("Scheduler not running, nothing to stop")
        return

    logger.info("Stopping background job scheduler...")
    _scheduler.shutdown(wait=True)
    _scheduler = None
    logger.info("Background job scheduler stopped")


def register_job(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    """
    Register a job for scheduling and manual triggering.

    Example:
        register_job(
            job_id="notifications_weekly_admin_digest",
            func=send_weekly_admin_digest,
            trigger=CronTrigger(day_of_week="mon", hour=9, timezone="Europe/London"),
        )
    """
    _job_registry[job_id] = (func, trigger)

    if _scheduler is None:
        logger.debug(f"Scheduler not started, job {job_id} will be added on start")
        return

    _add_to_scheduler(job_id, func, trigger)


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Run a registered job immediately, bypassing its schedule.

    Returns:
        Dict with job_id, status ("success" or "error"), executed_at, and
        either the job's result or the error message

    Raises:
        ValueError: If job_id is not registered
    """
    if job_id not in _job_registry:
        raise ValueError(
            f"Job {job_id} not found in registry. Available jobs: {list(_job_registry.keys())}"
        )

    func, _ = _job_registry[job_id]
    executed_at = datetime.now(UTC)
    logger.info(f"Manually triggering job: {job_id}")

    try:
        result = await func()
    except Exception as e:
        logger.error(f"Manual execution of job {job_id} failed: {e}", exc_info=True)
        return {
            "job_id": job_id,
            "status": "error",
            "executed_at": executed_at.isoformat(),
            "error": str(e),
        }

    logger.info(f"Manual execution of job {job_id} completed successfully")
    return {
        "job_id": job_id,
        "status": "success",
        "executed_at": executed_at.isoformat(),
        "result": result,
    }


def list_registered_jobs() -> list[dict[str, Any]]:
    """List registered jobs with their next run time and pause state."""
    jobs = []
    for job_id in _job_registry:
        job_info: dict[str, Any] = {"job_id": job_id, "registered": True}

        if _scheduler is not None:
            scheduled_job = _scheduler.get_job(job_id)
            next_run = scheduled_job.next_run_time if scheduled_job else None
            job_info["next_run_time"] = next_run.isoformat() if next_run else None
            job_info["is_paused"] = next_run is None

        jobs.append(job_info)
    return jobs


def pause_job(job_id: str) -> bool:
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Cannot pause job {job_id}: not scheduled")
        return False
    _scheduler.pause_job(job_id)
    logger.info(f"Paused job: {job_id}")
    return True


def resume_job(job_id: str) -> bool:
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Cannot resume job {job_id}: not scheduled")
        return False
    _scheduler.resume_job(job_id)
    logger.info(f"Resumed job: {job_id}")
    return True
