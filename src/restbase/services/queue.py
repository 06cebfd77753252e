"""Job submission on top of Celery, with de-duplication in the Django cache."""

import logging

from django.conf import settings
from django.core.cache import cache

from ..jobs import (
    DEPENDENCY_JOBS,
    PageBatchJob,
    RecursiveBacklinksJob,
    describe_job,
    encode_job,
    job_signature,
)

logger = logging.getLogger(__name__)

PENDING_KEY_PREFIX = "restbase:pending:"
ROOT_JOB_KEY_PREFIX = "restbase:rootjob:"
PENDING_JOB_TTL = 3600  # 1 hour


class JobQueue:
    """Pushes invalidation jobs to the Celery queue.

    Two kinds of de-duplication are applied:

    - Single-page jobs are dropped when an identical job is still pending.
    - Dependency jobs carry a root job; ``deduplicate_root_job`` records the
      newest root timestamp per signature so that older job trees for the same
      change can be recognised as superseded when they run.
    """

    def __init__(self, remove_duplicates: bool | None = None, root_job_ttl: int | None = None):
        if remove_duplicates is None:
            remove_duplicates = settings.RESTBASE_REMOVE_DUPLICATES
        self.remove_duplicates = remove_duplicates
        self.root_job_ttl = root_job_ttl or settings.RESTBASE_ROOT_JOB_TTL

    @staticmethod
    def pending_key(job) -> str:
        return f"{PENDING_KEY_PREFIX}{job_signature(job)}"

    @staticmethod
    def root_job_key(job) -> str:
        return f"{ROOT_JOB_KEY_PREFIX}{job.root.signature}"

    def _tracks_pending(self, job) -> bool:
        return self.remove_duplicates and not isinstance(job, DEPENDENCY_JOBS)

    def push(self, jobs) -> int:
        """Enqueue one job or a list of jobs. Returns the number actually pushed."""
        from ..tasks import run_update_job

        if not isinstance(jobs, (list, tuple)):
            jobs = [jobs]

        pushed = 0
        for job in jobs:
            tracked = self._tracks_pending(job)
            if tracked and not cache.add(self.pending_key(job), 1, PENDING_JOB_TTL):
                logger.debug("Skipping duplicate of pending job: %s", describe_job(job))
                continue
            try:
                run_update_job.delay(encode_job(job))
            except Exception:
                logger.error("Failed to enqueue %s", describe_job(job))
                if tracked:
                    cache.delete(self.pending_key(job))
                raise
            pushed += 1

        if pushed:
            logger.info("Pushed %d RESTBase update job(s)", pushed)
        return pushed

    def release(self, job) -> None:
        """Forget that ``job`` is pending (called when it starts running)."""
        if self._tracks_pending(job):
            cache.delete(self.pending_key(job))

    def deduplicate_root_job(self, job: RecursiveBacklinksJob | PageBatchJob) -> bool:
        """Register ``job``'s root as the newest for its signature.

        Returns False if a newer root is already registered.
        """
        key = self.root_job_key(job)
        if cache.add(key, job.root.timestamp, self.root_job_ttl):
            return True

        stored = cache.get(key)
        if stored is not None and stored >= job.root.timestamp:
            return False
        cache.set(key, job.root.timestamp, self.root_job_ttl)
        return True

    def is_root_job_superseded(self, job: RecursiveBacklinksJob | PageBatchJob) -> bool:
        """Whether a newer root job with the same signature has been registered."""
        if not job.root.timestamp:
            return False
        stored = cache.get(self.root_job_key(job))
        return stored is not None and stored > job.root.timestamp


def is_superseded(job, queue: JobQueue) -> bool:
    """Default stale-job policy: drop dependency jobs whose root was superseded."""
    return isinstance(job, DEPENDENCY_JOBS) and queue.is_root_job_superseded(job)


_job_queue = None


def get_job_queue() -> JobQueue:
    """Get the job queue singleton."""
    global _job_queue
    if _job_queue is None:
        _job_queue = JobQueue()
    return _job_queue
