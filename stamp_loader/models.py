"""
Module containing data models for the load generator.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


# Utilization reported by the node once a batch has no capacity left.
FULL_UTILIZATION = 16

DEFAULT_BASE_URL = "http://localhost:1635"
DEFAULT_PAYLOAD_SIZE = 5 * 1024 * 1024
DEFAULT_POLL_INTERVAL = 5.0


# bool is a subclass of int, reject it explicitly
def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Batch:
    """Snapshot of a postage batch as last reported by the node."""
    batch_id: str
    utilization: int = 0
    expired: bool = False
    usable: bool = False

    @classmethod
    def placeholder(cls, batch_id: str) -> "Batch":
        """Create the id-only snapshot a worker starts from."""
        return cls(batch_id=batch_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Batch":
        """Build a snapshot from a ``GET /stamps/{id}`` response body.

        Args:
            data: Decoded JSON body

        Returns:
            Batch snapshot

        Raises:
            ValueError: If a field is missing
            TypeError: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")

        missing = [k for k in ("batchID", "utilization", "expired", "usable") if k not in data]
        if missing:
            raise ValueError(f"missing fields: {', '.join(missing)}")

        batch_id = data["batchID"]
        utilization = data["utilization"]
        expired = data["expired"]
        usable = data["usable"]

        if not isinstance(batch_id, str):
            raise TypeError("batchID must be a string")
        if not _is_int(utilization):
            raise TypeError("utilization must be an integer")
        if not isinstance(expired, bool) or not isinstance(usable, bool):
            raise TypeError("expired and usable must be booleans")

        return cls(batch_id=batch_id, utilization=utilization,
                   expired=expired, usable=usable)

    @property
    def full(self) -> bool:
        return self.utilization == FULL_UTILIZATION


@dataclass
class WorkerConfig:
    """Configuration of a single upload worker."""
    name: str
    batch_id: str
    log_file: Path
    encrypt: bool = False
    deferred: bool = False

    def __post_init__(self):
        """Validate the worker configuration."""
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("worker name must be a non-empty string")
        if not isinstance(self.batch_id, str) or not self.batch_id:
            raise ValueError(f"batch_id for worker {self.name} must be a non-empty string")
        for flag in ("encrypt", "deferred"):
            if not isinstance(getattr(self, flag), bool):
                raise ValueError(f"{flag} for worker {self.name} must be true or false")
        self.log_file = Path(self.log_file)


def default_workers() -> List[WorkerConfig]:
    """The reference deployment: one encrypted and one plain worker."""
    return [
        WorkerConfig(
            name="encrypted",
            batch_id="33061094e7281dbc29baf3b825d219d39c6999c8a11572863656225ad9bd287e",
            log_file=Path("encrypted.log"),
            encrypt=True,
            deferred=False,
        ),
        WorkerConfig(
            name="non-encrypted",
            batch_id="b7f8691f430db68104e5c92b8aaf2041bd99749fc1aeba44db77ab0a014b614b",
            log_file=Path("non-encrypted.log"),
            encrypt=False,
            deferred=False,
        ),
    ]


@dataclass
class LoadConfig:
    """Run-wide configuration, built once at startup."""
    base_url: str = DEFAULT_BASE_URL
    payload_size: int = DEFAULT_PAYLOAD_SIZE
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: Optional[float] = None
    workers: List[WorkerConfig] = field(default_factory=default_workers)

    def __post_init__(self):
        """Validate the load configuration."""
        if not isinstance(self.base_url, str) or not self.base_url:
            raise ValueError("base_url must be a non-empty string")
        if not _is_int(self.payload_size) or self.payload_size <= 0:
            raise ValueError("payload_size must be a positive integer")
        if not _is_number(self.poll_interval) or self.poll_interval < 0:
            raise ValueError("poll_interval must be a non-negative number")
        if self.request_timeout is not None and (
                not _is_number(self.request_timeout) or self.request_timeout <= 0):
            raise ValueError("request_timeout must be a positive number")
        if not self.workers:
            raise ValueError("at least one worker must be configured")

        names = [w.name for w in self.workers]
        if len(set(names)) != len(names):
            raise ValueError(f"worker names must be unique: {names}")


class WorkerOutcome(Enum):
    """Terminal state of a worker run."""
    STOPPED = "stopped"
    EXPIRED = "expired"
    FULL = "full"
    UPLOAD_ERROR = "upload-error"
    STATUS_ERROR = "status-error"
    STARTUP_ERROR = "startup-error"
    INTERNAL_ERROR = "internal-error"

    @property
    def failed(self) -> bool:
        return self not in (WorkerOutcome.STOPPED, WorkerOutcome.EXPIRED, WorkerOutcome.FULL)


@dataclass
class WorkerResult:
    """Represents the result of a single worker run."""
    name: str
    batch_id: str
    outcome: Optional[WorkerOutcome] = None
    error: Optional[Exception] = None
    iterations: int = 0
    total_uploaded: int = 0
    batch: Optional[Batch] = None

    @property
    def failed(self) -> bool:
        return self.outcome is not None and self.outcome.failed
