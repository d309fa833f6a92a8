"""
Tests for the command-line interface.
"""
import argparse
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from stamp_loader.cli import build_config, load_config, main
from stamp_loader.exceptions import StatusError
from stamp_loader.models import Batch, WorkerOutcome, WorkerResult


def make_args(**kwargs):
    defaults = dict(config=None, base_url=None, timeout=None,
                    payload_size=None, poll_interval=None, verbose=False)
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


def test_load_config_without_file():
    assert load_config(None) == {}


def test_load_config_handles_invalid_json(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("invalid json{")

    assert load_config(config_file) == {}


def test_load_config_handles_missing_file(tmp_path):
    assert load_config(tmp_path / "missing.json") == {}


def test_build_config_defaults():
    config = build_config(make_args())

    assert config.base_url == "http://localhost:1635"
    assert [w.name for w in config.workers] == ["encrypted", "non-encrypted"]


def test_build_config_from_file_and_flags(tmp_path):
    """Test that flags override the config file, which overrides defaults."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "base_url": "http://bee:1633",
        "payload_size": 4096,
        "poll_interval": 1,
        "workers": [
            {"name": "deferred", "batch_id": "abc", "deferred": True,
             "log_file": str(tmp_path / "deferred.log")},
        ],
    }))

    config = build_config(make_args(config=config_file, payload_size=8192, timeout=30.0))

    assert config.base_url == "http://bee:1633"
    assert config.payload_size == 8192
    assert config.poll_interval == 1
    assert config.request_timeout == 30.0
    (worker,) = config.workers
    assert worker.name == "deferred"
    assert worker.deferred and not worker.encrypt
    assert worker.log_file == tmp_path / "deferred.log"


def test_build_config_rejects_bad_worker_entry(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"workers": [{"name": "no-batch"}]}))

    with pytest.raises(ValueError, match="invalid worker entry"):
        build_config(make_args(config=config_file))


def test_worker_log_file_defaults_to_name(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"workers": [{"name": "w1", "batch_id": "abc"}]}))

    config = build_config(make_args(config=config_file))

    assert config.workers[0].log_file == Path("w1.log")


def test_run_exits_nonzero_when_a_worker_failed():
    results = [
        WorkerResult(name="encrypted", batch_id="a", outcome=WorkerOutcome.UPLOAD_ERROR,
                     error=StatusError("boom")),
        WorkerResult(name="non-encrypted", batch_id="b", outcome=WorkerOutcome.STOPPED),
    ]
    with patch("stamp_loader.cli.WorkerCoordinator") as coordinator_cls:
        coordinator_cls.return_value.run_all.return_value = results
        with pytest.raises(SystemExit) as exc_info:
            main(["run"])

    assert exc_info.value.code == 1


def test_run_exits_zero_when_all_batches_finish():
    results = [
        WorkerResult(name="encrypted", batch_id="a", outcome=WorkerOutcome.FULL),
        WorkerResult(name="non-encrypted", batch_id="b", outcome=WorkerOutcome.EXPIRED),
    ]
    with patch("stamp_loader.cli.WorkerCoordinator") as coordinator_cls:
        coordinator_cls.return_value.run_all.return_value = results
        with pytest.raises(SystemExit) as exc_info:
            main(["-u", "http://bee:1633", "run", "-s", "1024", "-i", "0.5"])

    assert exc_info.value.code == 0
    config = coordinator_cls.call_args.args[0]
    assert config.base_url == "http://bee:1633"
    assert config.payload_size == 1024
    assert config.poll_interval == 0.5


def test_invalid_flag_value_exits_with_usage_error():
    with patch("stamp_loader.cli.WorkerCoordinator") as coordinator_cls:
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "-s", "0"])

    assert exc_info.value.code == 2
    coordinator_cls.assert_not_called()


def test_status_prints_batch(capsys):
    with patch("stamp_loader.cli.BatchStatusClient") as client_cls:
        client_cls.return_value.fetch.return_value = Batch("abc", 3, False, True)
        with pytest.raises(SystemExit) as exc_info:
            main(["status", "abc"])

    assert exc_info.value.code == 0
    assert json.loads(capsys.readouterr().out) == {
        "batch_id": "abc",
        "utilization": 3,
        "expired": False,
        "usable": True,
    }
    client_cls.return_value.close.assert_called_once()


def test_status_reports_fetch_error():
    with patch("stamp_loader.cli.BatchStatusClient") as client_cls:
        client_cls.return_value.fetch.side_effect = StatusError("get stamp: 404")
        with pytest.raises(SystemExit) as exc_info:
            main(["status", "abc"])

    assert exc_info.value.code == 1


def test_build_config_rejects_string_flags(tmp_path):
    """Test that "false" in the config file is not read as encrypt=True."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "workers": [{"name": "w1", "batch_id": "abc", "encrypt": "false"}],
    }))

    with pytest.raises(ValueError, match="encrypt"):
        build_config(make_args(config=config_file))


@pytest.mark.parametrize("settings", [
    {"payload_size": "5242880"},
    {"payload_size": 1.5},
    {"poll_interval": "5"},
    {"request_timeout": "30"},
    {"workers": [{"name": "w1", "batch_id": "abc", "deferred": "yes"}]},
])
def test_mistyped_config_file_exits_with_usage_error(tmp_path, settings):
    """Test that wrongly typed config values are rejected before any worker starts."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(settings))

    with patch("stamp_loader.cli.WorkerCoordinator") as coordinator_cls:
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config_file), "run"])

    assert exc_info.value.code == 2
    coordinator_cls.assert_not_called()
