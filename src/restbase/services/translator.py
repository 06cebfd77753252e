"""Translation of wiki change events into invalidation jobs."""

import logging
from dataclasses import dataclass
from enum import Enum

from ..jobs import (
    DependencyTable,
    EditMode,
    PageUpdateJob,
    RecursiveBacklinksJob,
    RevisionVisibilityJob,
    RootJob,
    describe_job,
    root_job_key,
)
from ..titles import Title
from .queue import JobQueue, get_job_queue
from .wiki_backend import WikiBackend, get_wiki_backend

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    EDIT = "edit"
    DELETE = "delete"
    UNDELETE = "undelete"
    MOVE = "move"
    REV_VISIBILITY = "rev_visibility"
    UPLOAD = "upload"


@dataclass(frozen=True)
class ChangeEvent:
    """A content change reported by the wiki."""

    kind: EventKind
    title: Title
    revision_id: int | None = None
    new_title: Title | None = None
    new_revision_id: int | None = None
    revisions: tuple[int, ...] = ()
    latest_revision_id: int | None = None


def dependency_job(
    title: Title, table: DependencyTable, latest_revision_id: int | None, backend: WikiBackend | None = None
) -> RecursiveBacklinksJob:
    """Root job refreshing every page that depends on ``title`` through ``table``."""
    if latest_revision_id is None and backend is not None:
        latest_revision_id = backend.latest_revision_id(title)
    return RecursiveBacklinksJob(
        title=title,
        table=table,
        root=RootJob.create(root_job_key(table, title, latest_revision_id)),
    )


def _page_jobs(title: Title, mode: EditMode, event: ChangeEvent, revision_id: int | None, backend) -> list:
    if title.is_file:
        # For now assume the file itself changed, not just its description page
        return [dependency_job(title, DependencyTable.IMAGELINKS, event.latest_revision_id or revision_id, backend)]

    jobs = [PageUpdateJob(title=title, mode=mode, revision_id=revision_id)]
    if mode is not EditMode.DELETE:
        jobs.append(
            dependency_job(title, DependencyTable.TEMPLATELINKS, event.latest_revision_id or revision_id, backend)
        )
    return jobs


def translate(event: ChangeEvent, backend: WikiBackend | None = None) -> list:
    """Return the jobs needed to invalidate everything ``event`` affected."""
    if event.kind in (EventKind.EDIT, EventKind.UNDELETE):
        return _page_jobs(event.title, EditMode.EDIT, event, event.revision_id, backend)

    if event.kind is EventKind.DELETE:
        return _page_jobs(event.title, EditMode.DELETE, event, event.revision_id, backend)

    if event.kind is EventKind.MOVE:
        if event.new_title is None:
            raise ValueError("Move events need a new title")
        return [
            PageUpdateJob(title=event.title, mode=EditMode.DELETE, revision_id=event.revision_id),
            PageUpdateJob(title=event.new_title, mode=EditMode.EDIT, revision_id=event.new_revision_id),
        ]

    if event.kind is EventKind.REV_VISIBILITY:
        return [RevisionVisibilityJob(title=event.title, revisions=tuple(event.revisions))]

    if event.kind is EventKind.UPLOAD:
        if event.title.is_file:
            return _page_jobs(event.title, EditMode.FILE, event, event.revision_id, backend)
        return [PageUpdateJob(title=event.title, mode=EditMode.FILE, revision_id=event.revision_id)]

    raise ValueError(f"Unknown event kind: {event.kind!r}")


def schedule(event: ChangeEvent, queue: JobQueue | None = None, backend: WikiBackend | None = None) -> list:
    """Translate ``event`` and push its jobs, registering each root job for de-duplication."""
    queue = queue or get_job_queue()
    backend = backend or get_wiki_backend()

    jobs = translate(event, backend)
    logger.debug("Scheduling %s for %s: %s", event.kind.value, event.title, [describe_job(j) for j in jobs])

    queue.push(jobs)
    for job in jobs:
        if isinstance(job, RecursiveBacklinksJob):
            queue.deduplicate_root_job(job)
    return jobs
