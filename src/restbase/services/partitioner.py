"""Splitting of recursive backlink jobs into page batches."""

import logging

from django.conf import settings

from ..jobs import PageBatchJob, RecursiveBacklinksJob
from .queue import JobQueue
from .wiki_backend import WikiBackend, chunked

logger = logging.getLogger(__name__)


class BacklinkPartitioner:
    """Converts a recursive backlink job into batch jobs.

    Each run scans at most ``rows_per_job`` backlink rows and groups them into
    batch jobs of ``titles_per_batch`` pages. If rows remain, a single
    continuation job picks up from the backlink cursor. All derived jobs keep
    the parent's root job so the queue can coalesce redundant trees.
    """

    def __init__(
        self,
        backend: WikiBackend,
        queue: JobQueue,
        rows_per_job: int | None = None,
        titles_per_batch: int | None = None,
    ):
        self.backend = backend
        self.queue = queue
        self.rows_per_job = rows_per_job or settings.RESTBASE_ROWS_PER_JOB
        self.titles_per_batch = titles_per_batch or settings.RESTBASE_TITLES_PER_JOB
        if self.rows_per_job < 1 or self.titles_per_batch < 1:
            raise ValueError("rows_per_job and titles_per_batch must be positive")

    def split(self, job: RecursiveBacklinksJob) -> list[PageBatchJob | RecursiveBacklinksJob]:
        """Build the batch jobs (and continuation job, if any) for ``job``."""
        page = self.backend.backlinks(job.title, job.table, cursor=job.cursor, limit=self.rows_per_job)

        jobs: list[PageBatchJob | RecursiveBacklinksJob] = [
            PageBatchJob(
                title=job.title,
                table=job.table,
                root=job.root,
                pages={row.page_id: row.title for row in chunk},
            )
            for chunk in chunked(page.rows, self.titles_per_batch)
        ]

        if page.cursor is not None:
            jobs.append(RecursiveBacklinksJob(title=job.title, table=job.table, root=job.root, cursor=page.cursor))

        return jobs

    def partition(self, job: RecursiveBacklinksJob) -> list[PageBatchJob | RecursiveBacklinksJob]:
        """Split ``job`` and push the resulting jobs to the queue."""
        jobs = self.split(job)
        if jobs:
            self.queue.push(jobs)
        self.queue.deduplicate_root_job(job)

        logger.info(
            "Partitioned %s backlinks of %s into %d job(s)%s",
            job.table.value,
            job.title,
            len(jobs),
            " with continuation" if jobs and isinstance(jobs[-1], RecursiveBacklinksJob) else "",
        )
        return jobs
