"""
Asynchronous notification dispatch.

``NotificationDispatcher`` is a ``Notifier`` that only enqueues. A worker
thread delivers each call through the wrapped notifier, retries failures
with exponential backoff and moves deliveries that keep failing to a
dead-letter list. The contract service therefore never waits on, or fails
because of, an unavailable delivery channel.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from contracts.adapters.notifier import Notifier
from contracts.enum.contract_status import SignerRole
from contracts.models.contract_models import Contract, Party

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass(frozen=True)
class DeliveryJob:
    operation: str
    contract_id: str
    args: Tuple[Any, ...]


@dataclass(frozen=True)
class DeadLetter:
    operation: str
    contract_id: str
    attempts: int
    error: str


class NotificationDispatcher(Notifier):
    def __init__(
        self,
        delegate: Notifier,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        max_backoff_seconds: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._delegate = delegate
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._max_backoff = max_backoff_seconds
        self._sleep = sleep
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._dead: List[DeadLetter] = []
        self._dead_lock = threading.Lock()
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="notification-dispatcher", daemon=True)
        self._worker.start()

    # ---- Notifier (enqueue only) --------------------------------------- #
    def send_contract_notification(self, contract: Contract, recipient: Party) -> None:
        self._enqueue("send_contract_notification", contract, recipient)

    def send_signature_request(self, contract: Contract, recipient: Party) -> None:
        self._enqueue("send_signature_request", contract, recipient)

    def send_signature_notification(self, contract: Contract, recipient: Party, signer_role: SignerRole) -> None:
        self._enqueue("send_signature_notification", contract, recipient, signer_role)

    def send_status_update_notification(self, contract: Contract) -> None:
        self._enqueue("send_status_update_notification", contract)

    # ---- lifecycle ------------------------------------------------------ #
    @property
    def dead_letters(self) -> List[DeadLetter]:
        with self._dead_lock:
            return list(self._dead)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until every queued delivery finished. False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def close(self, timeout: Optional[float] = 5.0) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._worker.join(timeout)
        self._delegate.close()

    # ---- worker --------------------------------------------------------- #
    def _enqueue(self, operation: str, contract: Contract, *args: Any) -> None:
        if self._closed:
            raise RuntimeError("NotificationDispatcher is closed")
        self._queue.put(DeliveryJob(operation, contract.id, (contract,) + args))

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                self._deliver(job)  # type: ignore[arg-type]
            finally:
                self._queue.task_done()

    def _deliver(self, job: DeliveryJob) -> None:
        method = getattr(self._delegate, job.operation)
        for attempt in range(1, self._max_attempts + 1):
            try:
                method(*job.args)
                return
            except Exception as exc:
                if attempt >= self._max_attempts:
                    letter = DeadLetter(job.operation, job.contract_id, attempt, str(exc))
                    with self._dead_lock:
                        self._dead.append(letter)
                    logger.error(
                        "Giving up on %s for %s after %d attempt(s): %s",
                        job.operation, job.contract_id, attempt, exc,
                    )
                    return
                delay = min(self._backoff * (2 ** (attempt - 1)), self._max_backoff)
                logger.warning(
                    "%s for %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    job.operation, job.contract_id, attempt, self._max_attempts, delay, exc,
                )
                self._sleep(delay)
