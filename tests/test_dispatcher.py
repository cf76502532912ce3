"""
Batch dispatcher tests.
"""

import math
import threading
import time

import pytest

from hackwknd.modules.campaigns.dispatcher import (
    BatchJob, batch_count, dispatch, partition
)


def _requests(n):
    return [{"id": i, "to": f"p{i}@example.com", "data": {}} for i in range(1, n + 1)]


def _every_fourth_fails(req):
    # Decided by position, not by timing
    if req["id"] % 4 == 0:
        return {"success": False, "id": None, "error": "rejected by provider"}
    return {"success": True, "id": f"msg-{req['id']}", "error": None}


# ---------------------------------------------------------------------------
# Partitioning
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("total,size", [(0, 5), (1, 5), (5, 5), (6, 5), (13, 5), (13, 4), (7, 1)])
def test_partition_produces_ceil_batches_in_order(total, size):
    items = list(range(total))
    batches = partition(items, size)

    assert len(batches) == math.ceil(total / size) == batch_count(total, size)
    assert [x for batch in batches for x in batch] == items
    assert all(len(batch) <= size for batch in batches)


def test_partition_rejects_non_positive_size():
    with pytest.raises(ValueError):
        partition([1, 2], 0)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def test_thirteen_recipients_every_fourth_fails():
    sizes = []
    report = dispatch(
        _requests(13), _every_fourth_fails, batch_size=5,
        on_batch=lambda job, outcome: sizes.append(len(job.requests)),
    )

    assert sizes == [5, 5, 3]
    assert report.batches == 3
    assert report.sent == 10
    assert report.failed == 3
    assert report.total == 13
    assert report.status == "partial"
    assert sorted(f["id"] for f in report.failures) == [4, 8, 12]


def test_exceptions_count_as_failures_and_do_not_abort():
    def flaky(req):
        if req["id"] == 2:
            raise ConnectionError("network unreachable")
        return {"success": True, "id": "ok", "error": None}

    report = dispatch(_requests(7), flaky, batch_size=3)
    assert (report.sent, report.failed, report.batches) == (6, 1, 3)
    assert report.failures[0]["error"] == "network unreachable"


def test_report_status_values():
    ok = lambda req: {"success": True, "id": "x", "error": None}
    bad = lambda req: {"success": False, "id": None, "error": "no"}

    assert dispatch([], ok).status == "empty"
    assert dispatch(_requests(3), ok).status == "completed"
    assert dispatch(_requests(3), bad).status == "failed"


def test_non_dict_result_is_a_failure():
    report = dispatch(_requests(2), lambda req: None)
    assert report.failed == 2


def test_batches_run_sequentially_with_bounded_concurrency():
    """At most one batch worth of sends is ever in flight."""
    lock = threading.Lock()
    in_flight = 0
    peak = 0
    order = []

    def slow_send(req):
        nonlocal in_flight, peak
        with lock:
            in_flight += 1
            peak = max(peak, in_flight)
        time.sleep(0.02)
        with lock:
            in_flight -= 1
            order.append(req["id"])
        return {"success": True, "id": "x", "error": None}

    dispatch(_requests(12), slow_send, batch_size=4)

    assert peak <= 4
    # Every id of batch n settles before any id of batch n + 1
    for n in range(3):
        assert sorted(order[n * 4:(n + 1) * 4]) == list(range(n * 4 + 1, n * 4 + 5))


def test_batch_job_settle_waits_for_all():
    job = BatchJob(index=0, requests=tuple(_requests(4)))
    outcome = job.settle(_every_fourth_fails)
    assert (outcome.succeeded, outcome.failed) == (3, 1)
    assert outcome.failures[0]["batch"] == 0
