"""
Exceptions raised by the load generator.
"""


class LoadGenError(Exception):
    """Base class for all load generator errors."""


class StatusError(LoadGenError):
    """Fetching the state of a postage batch failed."""


class UploadError(LoadGenError):
    """Uploading a payload to the storage node failed."""


class PayloadError(UploadError):
    """Generating the random payload for an upload failed."""


class StartupError(LoadGenError):
    """A local resource needed by a worker could not be opened."""


class WorkerFailed(LoadGenError):
    """A worker reached a terminal error; carries the worker name."""

    def __init__(self, worker_name: str, error: BaseException):
        super().__init__(f"{worker_name}: {error}")
        self.worker_name = worker_name
        self.error = error


class Interrupted(LoadGenError):
    """The run was interrupted by the operator."""
