"""Celery tasks for RESTBase invalidation jobs."""

import logging

from celery import shared_task
from django.conf import settings

from .exceptions import BacklinkSourceError, InvalidationFailed
from .jobs import decode_job, describe_job
from .services.runner import JobResult, JobRunner

logger = logging.getLogger(__name__)


def run_update_job_sync(params: dict, runner: JobRunner | None = None) -> JobResult:
    """Decode and run one job. Raises InvalidationFailed if dispatch reported an error."""
    runner = runner or JobRunner.from_settings()
    job = decode_job(params)
    result = runner.run(job)

    if not result.ok:
        raise InvalidationFailed(result.error or "unknown error", describe_job(job))

    logger.info(
        "Finished %s (%d requests, %d jobs%s)",
        describe_job(job),
        result.requests,
        result.jobs,
        ", discarded" if result.discarded else "",
    )
    return result


@shared_task(
    name="restbase.run_update_job",
    acks_late=True,
    autoretry_for=(InvalidationFailed, BacklinkSourceError),
    retry_backoff=True,
    max_retries=settings.RESTBASE_MAX_RETRIES,
)
def run_update_job(params: dict):
    """Run a RESTBase update job (Celery task wrapper)."""
    result = run_update_job_sync(params)
    return {"requests": result.requests, "jobs": result.jobs, "discarded": result.discarded}
