"""Exceptions raised while generating and running invalidation jobs."""


class RestbaseUpdateError(Exception):
    """Base class for RESTBase update errors."""

    pass


class InvalidationFailed(RestbaseUpdateError):
    """Raised when an invalidation request batch reports an error.

    The queue retries the whole job; invalidation requests are idempotent.
    """

    def __init__(self, error: str, job_description: str = ""):
        self.error = error
        self.job_description = job_description
        message = f"{job_description}: {error}" if job_description else error
        super().__init__(message)


class BacklinkSourceError(RestbaseUpdateError):
    """Raised when revisions or backlinks cannot be fetched from the wiki."""

    pass
