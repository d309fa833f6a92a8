"""
Module implementing the batch lifecycle upload loop of a single worker.
"""
import logging
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_result,
    wait_fixed,
)

from .client import BatchStatusClient, UploadClient, generate_payload
from .exceptions import StartupError, StatusError, UploadError
from .models import Batch, WorkerConfig, WorkerOutcome, WorkerResult
from .signals import StopSignal
from .tracker import WorkerLog, format_bytes

logger = logging.getLogger(__name__)


def _not_usable(batch: Batch) -> bool:
    return not batch.usable


class UploadWorker:
    """Uploads random payloads under one batch until it is full or expired.

    The worker first polls the batch every ``poll_interval`` seconds until
    the node reports it usable, then loops: check the stop signal, upload
    one payload, re-poll the batch. Expiry is checked before utilization.
    """

    def __init__(self, config: WorkerConfig,
                 status_client: BatchStatusClient,
                 upload_client: UploadClient,
                 stop_signal: StopSignal,
                 payload_size: int,
                 poll_interval: float,
                 payload_factory: Callable[[int], bytes] = generate_payload,
                 sleep: Optional[Callable[[float], object]] = None):
        """Initialize the upload worker.

        Args:
            config: Worker configuration
            status_client: Client used to poll the batch
            upload_client: Client used to upload payloads
            stop_signal: Signal shared with sibling workers
            payload_size: Bytes per upload
            poll_interval: Seconds between polls while waiting for usability
            payload_factory: Produces a payload of the requested size
            sleep: Sleep function used between usability polls; defaults to
                waiting on the stop signal so a stop cuts the wait short
        """
        self.config = config
        self.status_client = status_client
        self.upload_client = upload_client
        self.stop_signal = stop_signal
        self.payload_size = payload_size
        self.poll_interval = poll_interval
        self._payload_factory = payload_factory
        self._sleep = sleep or stop_signal.wait
        self._log: Optional[WorkerLog] = None

    @property
    def name(self) -> str:
        return self.config.name

    def run(self) -> WorkerResult:
        """Run the worker until it reaches a terminal state.

        Returns:
            WorkerResult describing the terminal outcome
        """
        result = WorkerResult(name=self.name, batch_id=self.config.batch_id)
        try:
            with WorkerLog(self.config.log_file, self.name) as log:
                self._log = log
                self._run(result)
        except StartupError as e:
            logger.error(f"Worker {self.name} could not start: {e}")
            result.outcome = WorkerOutcome.STARTUP_ERROR
            result.error = e
        finally:
            self._log = None
        return result

    def _run(self, result: WorkerResult) -> None:
        batch = Batch.placeholder(self.config.batch_id)
        result.batch = batch
        self._log.write(f"batchID={batch.batch_id}")

        try:
            batch = self._await_usable(batch.batch_id)
        except RetryError:
            self._stop(result)
            return
        except StatusError as e:
            self._fail(result, WorkerOutcome.STATUS_ERROR, e)
            return
        result.batch = batch

        while True:
            if self.stop_signal.is_set():
                self._stop(result)
                return

            try:
                payload = self._payload_factory(self.payload_size)
                self.upload_client.upload(payload, batch.batch_id,
                                          self.config.encrypt, self.config.deferred)
            except UploadError as e:
                self._fail(result, WorkerOutcome.UPLOAD_ERROR, e)
                return

            previous = batch
            try:
                batch = self.status_client.fetch(batch.batch_id)
            except StatusError as e:
                self._fail(result, WorkerOutcome.STATUS_ERROR, e)
                return

            result.batch = batch
            result.iterations += 1
            result.total_uploaded += self.payload_size
            self._log.write(f"totalUploaded={format_bytes(result.total_uploaded)} "
                            f"utilization={batch.utilization}")

            if batch.utilization < previous.utilization:
                logger.warning(
                    f"Worker {self.name}: utilization of {batch.batch_id} went down "
                    f"from {previous.utilization} to {batch.utilization}"
                )

            if batch.expired:
                self._log.write("batch expired")
                result.outcome = WorkerOutcome.EXPIRED
                return
            if batch.full:
                self._log.write("batch full")
                result.outcome = WorkerOutcome.FULL
                return

    def _await_usable(self, batch_id: str) -> Batch:
        """Poll the batch until the node reports it usable.

        A status error ends the wait immediately. A stop signal ends it
        with RetryError.
        """
        retryer = Retrying(
            retry=retry_if_result(_not_usable),
            wait=wait_fixed(self.poll_interval),
            stop=self._stop_requested,
            before=self._before_poll,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            sleep=self._sleep,
        )
        return retryer(self.status_client.fetch, batch_id)

    def _before_poll(self, retry_state: RetryCallState) -> None:
        self._log.write("waiting for stamp to be usable")

    def _stop_requested(self, retry_state: RetryCallState) -> bool:
        return self.stop_signal.is_set()

    def _stop(self, result: WorkerResult) -> None:
        self._log.write(f"stopping: {self.stop_signal.reason}")
        result.outcome = WorkerOutcome.STOPPED

    def _fail(self, result: WorkerResult, outcome: WorkerOutcome, error: Exception) -> None:
        self._log.write(f"error: {error}")
        result.outcome = outcome
        result.error = error
