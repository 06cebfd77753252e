"""Execution of decoded invalidation jobs."""

import logging
from dataclasses import dataclass

from django.conf import settings
from django.utils.module_loading import import_string

from ..jobs import (
    DEPENDENCY_JOBS,
    EditMode,
    PageBatchJob,
    PageUpdateJob,
    RecursiveBacklinksJob,
    RevisionVisibilityJob,
    UnrecognizedJob,
    describe_job,
)
from .dispatcher import DispatchResult, InvalidationRequest, RequestDispatcher, get_dispatcher
from .endpoint import RestbaseEndpoint
from .partitioner import BacklinkPartitioner
from .queue import JobQueue, get_job_queue, is_superseded
from .wiki_backend import WikiBackend, get_wiki_backend

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    """Outcome of running one job."""

    ok: bool
    error: str | None = None
    requests: int = 0
    jobs: int = 0
    discarded: bool = False

    @classmethod
    def from_dispatch(cls, result: DispatchResult) -> "JobResult":
        return cls(ok=result.ok, error=result.error, requests=result.count)


def get_stale_job_policy():
    """Return the configured ``(job, queue) -> bool`` predicate, or None if disabled."""
    if not settings.RESTBASE_DISCARD_SUPERSEDED_JOBS:
        return None
    if settings.RESTBASE_STALE_JOB_POLICY:
        return import_string(settings.RESTBASE_STALE_JOB_POLICY)
    return is_superseded


class JobRunner:
    """Routes each job variant to its handler."""

    def __init__(
        self,
        endpoint: RestbaseEndpoint,
        backend: WikiBackend,
        queue: JobQueue,
        dispatcher: RequestDispatcher | None = None,
        partitioner: BacklinkPartitioner | None = None,
        stale_job_policy=None,
    ):
        self.endpoint = endpoint
        self.backend = backend
        self.queue = queue
        self.dispatcher = dispatcher or get_dispatcher()
        self.partitioner = partitioner or BacklinkPartitioner(backend, queue)
        self.stale_job_policy = stale_job_policy

    @classmethod
    def from_settings(cls) -> "JobRunner":
        return cls(
            endpoint=RestbaseEndpoint.from_settings(),
            backend=get_wiki_backend(),
            queue=get_job_queue(),
            stale_job_policy=get_stale_job_policy(),
        )

    def run(self, job) -> JobResult:
        if isinstance(job, UnrecognizedJob):
            # Old-style job; discard
            logger.info("Discarding %s", describe_job(job))
            return JobResult(ok=True, discarded=True)

        self.queue.release(job)

        if isinstance(job, DEPENDENCY_JOBS) and self.stale_job_policy and self.stale_job_policy(job, self.queue):
            logger.info("Discarding superseded %s", describe_job(job))
            return JobResult(ok=True, discarded=True)

        if isinstance(job, RevisionVisibilityJob):
            return self.signal_revision_change(job)
        if isinstance(job, PageUpdateJob):
            return self.invalidate_title(job)
        if isinstance(job, RecursiveBacklinksJob):
            return JobResult(ok=True, jobs=len(self.partitioner.partition(job)))
        if isinstance(job, PageBatchJob):
            return self.invalidate_titles(job)
        raise TypeError(f"Unhandled job type {type(job).__name__}")

    def signal_revision_change(self, job: RevisionVisibilityJob) -> JobResult:
        """Tell RESTBase the visibility of some revisions changed."""
        batch = [InvalidationRequest.no_cache(self.endpoint.revision_url(rev)) for rev in job.revisions]
        return JobResult.from_dispatch(self.dispatcher.dispatch(batch))

    def invalidate_title(self, job: PageUpdateJob) -> JobResult:
        """Invalidate a single title after an edit.

        The parent revision header lets RESTBase reuse expansions from the
        previous render.
        """
        dbkey = self.backend.prefixed_dbkey(job.title)
        revision_id = job.revision_id or self.backend.latest_revision_id(job.title)
        if not revision_id:
            if job.mode is EditMode.DELETE:
                # The page is gone; purge it without a revision
                request = InvalidationRequest.no_cache(self.endpoint.page_url(dbkey))
                return JobResult.from_dispatch(self.dispatcher.dispatch([request]))
            logger.warning("No revision found for %s; nothing to invalidate", job.title)
            return JobResult(ok=True, discarded=True)

        headers = {}
        previous = self.backend.previous_revision_id(job.title, revision_id)
        if previous:
            headers["X-Restbase-ParentRevision"] = str(previous)

        request = InvalidationRequest.no_cache(self.endpoint.page_url(dbkey, revision_id), **headers)
        return JobResult.from_dispatch(self.dispatcher.dispatch([request]))

    def invalidate_titles(self, job: PageBatchJob) -> JobResult:
        """Invalidate a batch of backlinking pages at their latest revisions."""
        latest = self.backend.latest_revision_ids(job.pages)
        mode = job.table.restbase_mode

        batch = [
            InvalidationRequest.no_cache(
                self.endpoint.page_url(self.backend.prefixed_dbkey(title), latest[page_id]),
                **{"X-Restbase-Mode": mode},
            )
            for page_id, title in job.pages.items()
            if page_id in latest
        ]
        skipped = len(job.pages) - len(batch)
        if skipped:
            logger.info("Skipping %d page(s) without revisions in batch for %s", skipped, job.title)

        return JobResult.from_dispatch(self.dispatcher.dispatch(batch))
