"""
Batch Dispatcher
================

Sends a list of email requests in fixed-size batches. Sends inside one batch
run concurrently and the batch waits for every one of them to settle; batches
run strictly one after another. A failed send is counted and recorded, never
retried, and never stops the run.
"""

import math
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5

SendFunc = Callable[[Dict[str, Any]], Dict[str, Any]]


def partition(items: Sequence, size: int) -> List[list]:
    """Contiguous batches of at most ``size`` items, in order"""
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    items = list(items)
    return [items[i:i + size] for i in range(0, len(items), size)]


def batch_count(total: int, size: int) -> int:
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    return math.ceil(total / size)


@dataclass
class BatchOutcome:
    succeeded: int = 0
    failed: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class BatchJob:
    index: int
    requests: tuple

    def settle(self, send: SendFunc) -> BatchOutcome:
        """Issue every send of the batch at once and wait for all of them"""
        outcome = BatchOutcome()
        if not self.requests:
            return outcome

        with ThreadPoolExecutor(max_workers=len(self.requests)) as executor:
            future_to_request = {executor.submit(send, req): req for req in self.requests}
            for future in as_completed(future_to_request):
                req = future_to_request[future]
                try:
                    result = future.result()
                except Exception as e:
                    error = str(e) or type(e).__name__
                else:
                    if isinstance(result, dict) and result.get('success'):
                        outcome.succeeded += 1
                        continue
                    error = (result or {}).get('error') if isinstance(result, dict) else None
                    error = error or 'Send reported failure'

                outcome.failed += 1
                outcome.failures.append({
                    'batch': self.index,
                    'id': req.get('id'),
                    'to': req.get('to'),
                    'error': error,
                })
                logger.warning(f"Batch {self.index}: send to {req.get('to')} failed: {error}")

        return outcome


@dataclass
class DispatchReport:
    batches: int = 0
    sent: int = 0
    failed: int = 0
    total: int = 0
    failures: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def status(self) -> str:
        if self.total == 0:
            return 'empty'
        if self.failed == 0:
            return 'completed'
        if self.sent == 0:
            return 'failed'
        return 'partial'

    def to_dict(self):
        return {
            'batches': self.batches,
            'sent': self.sent,
            'failed': self.failed,
            'total': self.total,
            'status': self.status,
        }


def dispatch(requests: Sequence[Dict[str, Any]], send: SendFunc,
             batch_size: int = DEFAULT_BATCH_SIZE,
             on_batch: Optional[Callable[[BatchJob, BatchOutcome], None]] = None) -> DispatchReport:
    """Send every request, batch by batch, and aggregate the outcome"""
    batches = partition(requests, batch_size)
    report = DispatchReport(total=len(requests))

    for index, items in enumerate(batches):
        job = BatchJob(index=index, requests=tuple(items))
        outcome = job.settle(send)
        report.batches += 1
        report.sent += outcome.succeeded
        report.failed += outcome.failed
        report.failures.extend(outcome.failures)
        logger.info(f"Batch {index + 1}/{len(batches)}: {outcome.succeeded} sent, {outcome.failed} failed")
        if on_batch:
            on_batch(job, outcome)

    return report
