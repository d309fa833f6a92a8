"""
Module for running upload workers concurrently with shared cancellation.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed, wait
from typing import Dict, List, Optional

from .client import BatchStatusClient, UploadClient
from .exceptions import Interrupted, LoadGenError, WorkerFailed
from .models import LoadConfig, WorkerConfig, WorkerOutcome, WorkerResult
from .signals import StopSignal
from .tracker import format_bytes
from .worker import UploadWorker

logger = logging.getLogger(__name__)

class WorkerCoordinator:
    """Runs a fixed set of upload workers; a failure in one stops them all."""

    def __init__(self, config: LoadConfig):
        """Initialize the worker coordinator.

        Args:
            config: Run-wide configuration
        """
        self.config = config
        self.stop_signal: Optional[StopSignal] = None

    def _build_worker(self, worker_config: WorkerConfig,
                      stop_signal: StopSignal) -> UploadWorker:
        # each worker owns its clients, sessions are not shared across threads
        status_client = BatchStatusClient(self.config.base_url,
                                          timeout=self.config.request_timeout)
        upload_client = UploadClient(self.config.base_url,
                                     timeout=self.config.request_timeout)
        return UploadWorker(
            worker_config,
            status_client,
            upload_client,
            stop_signal,
            payload_size=self.config.payload_size,
            poll_interval=self.config.poll_interval,
        )

    def _run_worker(self, worker: UploadWorker) -> WorkerResult:
        """Run one worker and report its failure on the stop signal.

        Args:
            worker: Worker to run

        Returns:
            The worker's result
        """
        try:
            result = worker.run()
        except Exception as e:
            logger.exception(f"Unexpected error in worker {worker.name}")
            worker.stop_signal.send(WorkerFailed(worker.name, e))
            result = WorkerResult(name=worker.name, batch_id=worker.config.batch_id,
                                  outcome=WorkerOutcome.INTERNAL_ERROR, error=e)
        else:
            if result.failed:
                worker.stop_signal.send(WorkerFailed(worker.name, result.error))
                logger.error(f"{worker.name} err {result.error}")
        finally:
            worker.status_client.close()
            worker.upload_client.close()
        return result

    def run_all(self, workers: Optional[List[WorkerConfig]] = None) -> List[WorkerResult]:
        """Run all workers and block until each reaches a terminal state.

        Args:
            workers: Worker configurations; defaults to those in the config

        Returns:
            One WorkerResult per worker, in configuration order
        """
        workers = workers if workers is not None else self.config.workers
        if not workers:
            return []

        stop_signal = StopSignal(capacity=len(workers))
        self.stop_signal = stop_signal
        upload_workers = [self._build_worker(w, stop_signal) for w in workers]

        with ThreadPoolExecutor(max_workers=len(upload_workers),
                                thread_name_prefix="upload-worker") as executor:
            futures = {
                executor.submit(self._run_worker, worker): worker
                for worker in upload_workers
            }
            try:
                for future in as_completed(futures):
                    result = future.result()
                    logger.info(
                        f"Worker {result.name} finished: {result.outcome.value}, "
                        f"{result.iterations} uploads, {format_bytes(result.total_uploaded)}"
                    )
            except KeyboardInterrupt:
                logger.warning("Interrupted, waiting for workers to stop")
                self.stop(Interrupted("interrupted by user"))
                wait(futures)

        results: Dict[str, WorkerResult] = {
            worker.name: future.result() for future, worker in futures.items()
        }
        return [results[w.name] for w in workers]

    def stop(self, reason: Optional[LoadGenError] = None) -> None:
        """Ask all running workers to stop at their next loop boundary.

        Only meaningful while ``run_all`` is running; the stop signal is
        created per run, so a request made before any run is dropped.

        Args:
            reason: Stop reason reported to the workers
        """
        if self.stop_signal is None:
            logger.warning("Stop requested before any run started, ignoring")
            return
        self.stop_signal.send(reason or Interrupted("stop requested"))
