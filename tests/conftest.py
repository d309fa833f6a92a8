"""
Test fixtures for the load generator.
"""
from unittest.mock import MagicMock

import pytest

from stamp_loader.models import LoadConfig, WorkerConfig
from stamp_loader.signals import StopSignal
from stamp_loader.worker import UploadWorker

BATCH_ID = "33061094e7281dbc29baf3b825d219d39c6999c8a11572863656225ad9bd287e"
PAYLOAD_SIZE = 1024


@pytest.fixture
def tmp_log_dir(tmp_path):
    """Create a temporary directory for worker logs."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir


@pytest.fixture
def worker_config(tmp_log_dir):
    """Create a test worker configuration."""
    return WorkerConfig(
        name="encrypted",
        batch_id=BATCH_ID,
        log_file=tmp_log_dir / "encrypted.log",
        encrypt=True,
        deferred=False,
    )


@pytest.fixture
def load_config(tmp_log_dir):
    """Create a two-worker load configuration with fast polling."""
    return LoadConfig(
        base_url="http://node.test:1635",
        payload_size=PAYLOAD_SIZE,
        poll_interval=0,
        workers=[
            WorkerConfig(name="encrypted", batch_id="batch-a",
                         log_file=tmp_log_dir / "encrypted.log", encrypt=True),
            WorkerConfig(name="non-encrypted", batch_id="batch-b",
                         log_file=tmp_log_dir / "non-encrypted.log"),
        ],
    )


@pytest.fixture
def stop_signal():
    return StopSignal(capacity=2)


@pytest.fixture
def status_client():
    """Mock batch status client."""
    return MagicMock()


@pytest.fixture
def upload_client():
    """Mock upload client that always succeeds."""
    client = MagicMock()
    client.upload.return_value = "ref"
    return client


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def make_worker(worker_config, status_client, upload_client, stop_signal, sleep):
    """Factory for workers wired to the mock clients."""
    def _make(**kwargs):
        params = dict(
            config=worker_config,
            status_client=status_client,
            upload_client=upload_client,
            stop_signal=stop_signal,
            payload_size=PAYLOAD_SIZE,
            poll_interval=0,
            sleep=sleep,
        )
        params.update(kwargs)
        return UploadWorker(**params)
    return _make
