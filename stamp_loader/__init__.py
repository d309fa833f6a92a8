from .client import BatchStatusClient, UploadClient
from .coordinator import WorkerCoordinator
from .models import Batch, LoadConfig, WorkerConfig, WorkerOutcome, WorkerResult
from .signals import StopSignal
from .worker import UploadWorker

__version__ = "0.1.0"

__all__ = [
    "BatchStatusClient",
    "UploadClient",
    "WorkerCoordinator",
    "Batch",
    "LoadConfig",
    "WorkerConfig",
    "WorkerOutcome",
    "WorkerResult",
    "StopSignal",
    "UploadWorker",
]
