"""Invalidation job descriptors and their queue wire format.

Jobs come in a few variants:

- ``PageUpdateJob``: purge a single page (the job title) after an edit,
  delete or file change.
- ``RevisionVisibilityJob``: signal that the visibility of some revisions
  of the job title changed.
- ``RecursiveBacklinksJob``: enumerate the backlinks of the job title and
  split them into batch jobs plus, possibly, one continuation job.
- ``PageBatchJob``: purge a concrete set of pages (the job title is only
  carried along for logging).

Jobs travel through Celery as plain JSON ``params`` dicts. ``encode_job`` and
``decode_job`` are the only places that know that format. Params that match
no variant decode to ``UnrecognizedJob``, which runs as a no-op so old jobs
can drain from the queue.
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from .titles import Title

ON_EDIT = "OnEdit"
ON_DEPENDENCY_CHANGE = "OnDependencyChange"
JOB_NAME_PREFIX = "RestbaseUpdateJob"


class EditMode(str, Enum):
    """Modes of a single-page update."""

    EDIT = "edit"
    DELETE = "delete"
    FILE = "file"
    REV_VISIBILITY = "rev_visibility"


class DependencyTable(str, Enum):
    """Link tables that backlink enumeration can follow."""

    TEMPLATELINKS = "templatelinks"
    IMAGELINKS = "imagelinks"

    @property
    def restbase_mode(self) -> str:
        """Value of the X-Restbase-Mode header for this table."""
        return "templates" if self is DependencyTable.TEMPLATELINKS else "files"


def _sha1(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def now_timestamp() -> str:
    """UTC timestamp that sorts lexicographically."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


@dataclass(frozen=True)
class RootJob:
    """De-duplication identity of the change a job tree descends from."""

    key: str
    signature: str
    timestamp: str

    @classmethod
    def create(cls, key: str, timestamp: str | None = None) -> "RootJob":
        return cls(key=key, signature=_sha1(key), timestamp=timestamp or now_timestamp())

    def to_params(self) -> dict:
        return {
            "rootJobKey": self.key,
            "rootJobSignature": self.signature,
            "rootJobTimestamp": self.timestamp,
        }


def root_job_key(table: "DependencyTable", title: Title, latest_revision_id: int | None) -> str:
    """Build the root dedup key for a dependency change on ``title``."""
    return f"{JOB_NAME_PREFIX}{ON_DEPENDENCY_CHANGE}:{table.value}:{title.prefixed_text}:{latest_revision_id or 0}"


@dataclass(frozen=True)
class PageUpdateJob:
    title: Title
    mode: EditMode = EditMode.EDIT
    revision_id: int | None = None


@dataclass(frozen=True)
class RevisionVisibilityJob:
    title: Title
    revisions: tuple[int, ...] = ()


@dataclass(frozen=True)
class RecursiveBacklinksJob:
    title: Title
    table: DependencyTable
    root: RootJob
    cursor: str | None = None


@dataclass(frozen=True)
class PageBatchJob:
    title: Title
    table: DependencyTable
    root: RootJob
    pages: dict[int, Title] = field(default_factory=dict)


@dataclass(frozen=True)
class UnrecognizedJob:
    """Params matching no known job shape."""

    params: dict = field(default_factory=dict)


JobDescriptor = PageUpdateJob | RevisionVisibilityJob | RecursiveBacklinksJob | PageBatchJob

DEPENDENCY_JOBS = (RecursiveBacklinksJob, PageBatchJob)


def job_type(job: JobDescriptor) -> str:
    """Return the queue job type, e.g. ``RestbaseUpdateJobOnEdit``."""
    variant = ON_DEPENDENCY_CHANGE if isinstance(job, DEPENDENCY_JOBS) else ON_EDIT
    return f"{JOB_NAME_PREFIX}{variant}"


def encode_job(job: JobDescriptor) -> dict:
    """Encode a job descriptor into JSON-compatible params."""
    params = {"title": job.title.as_pair()}

    if isinstance(job, PageUpdateJob):
        params.update(type=ON_EDIT, mode=job.mode.value)
        if job.revision_id is not None:
            params["rev"] = job.revision_id
    elif isinstance(job, RevisionVisibilityJob):
        params.update(type=ON_EDIT, mode=EditMode.REV_VISIBILITY.value, revs=list(job.revisions))
    elif isinstance(job, RecursiveBacklinksJob):
        params.update(type=ON_DEPENDENCY_CHANGE, table=job.table.value, recursive=True)
        if job.cursor is not None:
            params["cursor"] = job.cursor
        params.update(job.root.to_params())
    elif isinstance(job, PageBatchJob):
        params.update(
            type=ON_DEPENDENCY_CHANGE,
            table=job.table.value,
            pages={str(page_id): title.as_pair() for page_id, title in job.pages.items()},
        )
        params.update(job.root.to_params())
    else:
        raise TypeError(f"Cannot encode job of type {type(job).__name__}")

    return params


def _decode_title(value) -> Title:
    if isinstance(value, str):
        return Title.parse(value)
    namespace, dbkey = value
    return Title(int(namespace), dbkey)


def _decode_root(params: dict) -> RootJob:
    key = params.get("rootJobKey", "")
    return RootJob(
        key=key,
        signature=params.get("rootJobSignature") or _sha1(key),
        timestamp=params.get("rootJobTimestamp") or "",
    )


def decode_job(params: dict) -> JobDescriptor | UnrecognizedJob:
    """Decode queue params into a job descriptor.

    Params without a ``type`` predate the OnEdit/OnDependencyChange split
    and are treated as OnEdit jobs.
    """
    kind = params.get("type", ON_EDIT)

    try:
        title = _decode_title(params["title"])

        if kind == ON_EDIT:
            mode = EditMode(params.get("mode", EditMode.EDIT.value))
            if mode is EditMode.REV_VISIBILITY:
                return RevisionVisibilityJob(title=title, revisions=tuple(int(r) for r in params.get("revs", ())))
            rev = params.get("rev")
            return PageUpdateJob(title=title, mode=mode, revision_id=int(rev) if rev else None)

        if kind == ON_DEPENDENCY_CHANGE:
            table = DependencyTable(params["table"])
            if params.get("recursive"):
                return RecursiveBacklinksJob(
                    title=title, table=table, root=_decode_root(params), cursor=params.get("cursor")
                )
            if "pages" in params:
                pages = {int(page_id): _decode_title(pair) for page_id, pair in params["pages"].items()}
                return PageBatchJob(title=title, table=table, root=_decode_root(params), pages=pages)
    except (KeyError, TypeError, ValueError):
        return UnrecognizedJob(params=params)

    return UnrecognizedJob(params=params)


def job_signature(job: JobDescriptor) -> str:
    """Identity of a job's work, ignoring timestamps."""
    params = encode_job(job)
    params.pop("rootJobTimestamp", None)
    return _sha1(json.dumps(params, sort_keys=True))


def describe_job(job) -> str:
    """Short human-readable description for logs."""
    if isinstance(job, UnrecognizedJob):
        return f"unrecognized job {job.params!r}"
    if isinstance(job, PageUpdateJob):
        return f"{job_type(job)} {job.mode.value} {job.title}"
    if isinstance(job, RevisionVisibilityJob):
        return f"{job_type(job)} rev_visibility {job.title} ({len(job.revisions)} revisions)"
    if isinstance(job, RecursiveBacklinksJob):
        return f"{job_type(job)} recursive {job.table.value} {job.title}"
    return f"{job_type(job)} {job.table.value} batch of {len(job.pages)} pages for {job.title}"
