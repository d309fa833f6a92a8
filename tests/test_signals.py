"""
Tests for the shared stop signal.
"""
import threading

import pytest

from stamp_loader.signals import StopSignal


def test_signal_starts_clear():
    signal = StopSignal(capacity=2)

    assert not signal.is_set()
    assert signal.reason is None
    assert signal.errors() == []
    assert not signal.wait(timeout=0)


def test_first_error_is_the_reason():
    """Test that later errors do not replace the first stop reason."""
    signal = StopSignal(capacity=2)
    first, second = RuntimeError("first"), RuntimeError("second")

    signal.send(first)
    signal.send(second)

    assert signal.is_set()
    assert signal.reason is first
    assert signal.errors() == [first, second]


def test_send_never_blocks_when_buffer_is_full():
    signal = StopSignal(capacity=1)

    signal.send(RuntimeError("a"))
    signal.send(RuntimeError("b"))

    assert len(signal.errors()) == 1
    assert str(signal.reason) == "a"


def test_all_waiters_observe_the_signal():
    """Test that one send is observed by every waiting thread."""
    signal = StopSignal(capacity=3)
    observed = []
    lock = threading.Lock()

    def waiter():
        if signal.wait(timeout=5):
            with lock:
                observed.append(signal.reason)

    threads = [threading.Thread(target=waiter) for _ in range(3)]
    for t in threads:
        t.start()
    error = RuntimeError("stop")
    signal.send(error)
    for t in threads:
        t.join(timeout=5)

    assert observed == [error, error, error]


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        StopSignal(capacity=0)
