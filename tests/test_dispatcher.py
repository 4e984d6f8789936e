"""Tests for the background webhook dispatcher."""

import threading

import pytest

from rundown_api.services import WebhookDispatcher


@pytest.fixture
def dispatcher():
    dispatcher = WebhookDispatcher(max_workers=1, max_backlog=2)
    yield dispatcher
    dispatcher.shutdown(wait=False)


def test_runs_submitted_task(dispatcher):
    done = threading.Event()

    assert dispatcher.submit(done.set) is True
    assert dispatcher.wait_idle(timeout=5) is True
    assert done.is_set()
    assert dispatcher.submitted == 1


def test_drops_tasks_when_backlog_full(dispatcher):
    release = threading.Event()

    assert dispatcher.submit(release.wait, 5) is True
    assert dispatcher.submit(release.wait, 5) is True
    assert dispatcher.submit(release.wait, 5) is False
    assert dispatcher.dropped == 1

    release.set()
    assert dispatcher.wait_idle(timeout=5) is True


def test_failures_are_counted_not_raised(dispatcher, caplog):
    def boom():
        raise RuntimeError("classification exploded")

    assert dispatcher.submit(boom) is True
    dispatcher.wait_idle(timeout=5)
    # the done-callback may run just after the future resolves
    dispatcher.shutdown(wait=True)

    assert dispatcher.failed == 1
    assert "classification exploded" in caplog.text


def test_submit_after_shutdown_is_dropped():
    dispatcher = WebhookDispatcher(max_workers=1, max_backlog=1)
    dispatcher.shutdown(wait=True)

    assert dispatcher.submit(lambda: None) is False
    assert dispatcher.dropped == 1


def test_rejects_bad_sizes():
    with pytest.raises(ValueError):
        WebhookDispatcher(max_workers=0)
    with pytest.raises(ValueError):
        WebhookDispatcher(max_backlog=0)
