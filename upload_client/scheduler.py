"""Bounded-concurrency chunk transfer with pause, resume and cancel."""

import threading
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Set

from common.checksum import sha256_hex
from common.logging_config import get_logger
from upload_client.exceptions import TransferCancelledError, UploadError
from upload_client.planner import chunk_span, count_chunks
from upload_client.retry import RetryPolicy
from upload_client.sources import ObjectSource
from upload_client.types import (
    FinalizeResult,
    TransferPlan,
    TransferState,
    TransferStatus,
    UploadSessionInfo,
    UploadTransport,
)

logger = get_logger(__name__)

StateCallback = Callable[[TransferState], None]

_ACTIVE_STATUSES = (TransferStatus.UPLOADING, TransferStatus.PAUSED, TransferStatus.ASSEMBLING)


class TransferScheduler:
    """
    Sends the chunks of one object and asks the server to assemble them.

    A scheduler owns its state: pending and uploaded indices, the pause flag
    and the TransferState. Two schedulers never share any of it, so one
    object's failure or pause has no effect on another.

    Worker threads claim chunk indices from the pending queue under a single
    condition lock. Pause, resume and cancel notify that condition, so workers
    waiting to send or waiting out a retry delay react at once. Every start and
    every cancel begins a new generation; results that arrive for an older
    generation are dropped.
    """

    def __init__(
        self,
        transport: UploadTransport,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        send_checksums: bool = True,
    ):
        """
        Args:
            transport: Server calls (init is done by the caller)
            retry_policy: Delays between retries; max_retries comes from the plan
            clock: Time source for speed and ETA
            send_checksums: Send a SHA-256 digest with every chunk
        """
        self.transport = transport
        self.retry_policy = retry_policy or RetryPolicy()
        self.send_checksums = send_checksums
        self._clock = clock

        self._cond = threading.Condition()
        self._state = TransferState()
        self._subscribers: List[StateCallback] = []

        self._pending: Deque[int] = deque()
        self._uploaded: Set[int] = set()
        self._paused = False
        self._active = 0
        self._generation = 0
        self._failure: Optional[UploadError] = None

        self._source: Optional[ObjectSource] = None
        self._plan: Optional[TransferPlan] = None
        self._session: Optional[UploadSessionInfo] = None
        self._policy = self.retry_policy
        self._total_chunks = 0
        self._started_at = 0.0
        self._resumed_bytes = 0
        self._result: Optional[FinalizeResult] = None

    @property
    def state(self) -> TransferState:
        """Snapshot of the current progress."""
        with self._cond:
            return self._state.snapshot()

    @property
    def result(self) -> Optional[FinalizeResult]:
        with self._cond:
            return self._result

    @property
    def total_chunks(self) -> int:
        return self._total_chunks

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """
        Register a callback receiving a state snapshot on every change.

        Returns:
            Function that removes the subscription
        """
        with self._cond:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._cond:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def start(self, source: ObjectSource, plan: TransferPlan, session: UploadSessionInfo) -> None:
        """
        Begin sending ``source`` in the background.

        Chunks the server already holds (``session.already_received_indices``)
        are counted as sent and skipped.

        Args:
            source: Object to send
            plan: Chunk size, concurrency and retry budget
            session: Session opened on the server for this object

        Raises:
            RuntimeError: If a transfer is already running on this scheduler
        """
        with self._cond:
            if self._state.status in _ACTIVE_STATUSES:
                raise RuntimeError(f"Transfer of '{source.name}' is already {self._state.status.value}")

            self._generation += 1
            generation = self._generation

            self._source = source
            self._plan = plan
            self._session = session
            self._policy = self.retry_policy.with_max_retries(plan.max_retries)
            self._total_chunks = count_chunks(source.size, plan.chunk_size)
            self._paused = False
            self._active = 0
            self._failure = None
            self._result = None

            already = {i for i in session.already_received_indices if 0 <= i < self._total_chunks}
            self._uploaded = set(already)
            self._pending = deque(i for i in range(self._total_chunks) if i not in already)

            sent = sum(chunk_span(source.size, plan.chunk_size, i).length for i in already)
            self._state = TransferState(
                total_bytes=source.size,
                sent_bytes=sent,
                status=TransferStatus.UPLOADING,
            )
            self._started_at = self._clock()
            self._resumed_bytes = sent
            self._notify()

        logger.info(
            f"Uploading '{source.name}' in session {session.session_id}: "
            f"{self._total_chunks} chunks of {plan.chunk_size} bytes, "
            f"concurrency {plan.concurrency}, {len(already)} already on server"
        )

        supervisor = threading.Thread(
            target=self._supervise,
            args=(generation,),
            name=f"transfer-{source.name}",
            daemon=True,
        )
        supervisor.start()

    def run(
        self,
        source: ObjectSource,
        plan: TransferPlan,
        session: UploadSessionInfo,
        timeout: Optional[float] = None,
    ) -> TransferState:
        """Start the transfer and block until it settles."""
        self.start(source, plan, session)
        return self.wait(timeout)

    def wait(self, timeout: Optional[float] = None) -> TransferState:
        """
        Block until the transfer is done, failed or cancelled.

        Returns:
            Final state snapshot (or the current one on timeout)
        """
        with self._cond:
            self._cond.wait_for(lambda: self._state.status not in _ACTIVE_STATUSES, timeout)
            return self._state.snapshot()

    def wait_for_status(self, status: TransferStatus, timeout: Optional[float] = None) -> bool:
        """Block until the transfer reaches ``status``; False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._state.status == status, timeout)

    def pause(self) -> None:
        """
        Stop starting new chunk sends.

        Sends already on the wire complete. The status turns to paused once
        none is left in flight.
        """
        with self._cond:
            if self._state.status not in (TransferStatus.UPLOADING, TransferStatus.PAUSED):
                return
            self._paused = True
            self._mark_paused_if_idle()
            self._cond.notify_all()
        logger.info(f"Paused transfer of '{self._source.name}'")

    def resume(self) -> None:
        """Continue a paused transfer."""
        with self._cond:
            if not self._paused or self._state.status not in _ACTIVE_STATUSES:
                return
            self._paused = False
            if self._state.status == TransferStatus.PAUSED:
                self._state.status = TransferStatus.UPLOADING
                self._notify()
            self._cond.notify_all()
        logger.info(f"Resumed transfer of '{self._source.name}'")

    def cancel(self) -> None:
        """
        Abandon the transfer and reset progress.

        The server session is left as it is. Sends still in flight finish but
        their results are ignored.
        """
        with self._cond:
            self._paused = True
            self._generation += 1
            self._active = 0
            self._pending.clear()
            self._uploaded.clear()
            self._failure = None
            self._result = None
            self._state = TransferState(total_bytes=self._state.total_bytes)
            self._notify()
            self._cond.notify_all()
        name = self._source.name if self._source else "<none>"
        logger.info(f"Cancelled transfer of '{name}'")

    def _supervise(self, generation: int) -> None:
        with self._cond:
            worker_count = min(self._plan.concurrency, len(self._pending))

        workers = [
            threading.Thread(
                target=self._work,
                args=(generation,),
                name=f"transfer-{self._source.name}-{n}",
                daemon=True,
            )
            for n in range(worker_count)
        ]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        with self._cond:
            while self._paused and generation == self._generation:
                self._cond.wait()
            if generation != self._generation or self._failure is not None:
                return
            self._state.status = TransferStatus.ASSEMBLING
            self._state.eta_seconds = None
            self._notify()
            session_id = self._session.session_id
            total_chunks = self._total_chunks
            name = self._source.name

        logger.info(f"All {total_chunks} chunks of '{name}' acknowledged, finalizing")
        try:
            result = self.transport.finalize(session_id, total_chunks, name)
        except Exception as e:
            logger.error(f"Finalize of '{name}' failed: {e}", exc_info=not isinstance(e, UploadError))
            with self._cond:
                if generation == self._generation:
                    self._state.status = TransferStatus.ERROR
                    self._state.last_error = f"Finalize failed: {e}"
                    self._notify()
            return

        with self._cond:
            if generation != self._generation:
                return
            self._result = result
            self._state.status = TransferStatus.DONE
            self._state.sent_bytes = self._state.total_bytes
            self._state.eta_seconds = 0.0
            self._state.final_path = result.final_path
            self._notify()
        logger.info(f"Upload of '{name}' complete: {result.final_path} ({result.size} bytes)")

    def _work(self, generation: int) -> None:
        while True:
            with self._cond:
                while self._paused and self._is_current(generation):
                    self._cond.wait()
                if not self._is_current(generation) or not self._pending:
                    return
                chunk_index = self._pending.popleft()

            try:
                self._send_chunk(generation, chunk_index)
            except TransferCancelledError:
                return
            except Exception as e:
                self._fail(generation, chunk_index, e)
                return

    def _send_chunk(self, generation: int, chunk_index: int) -> None:
        span = chunk_span(self._source.size, self._plan.chunk_size, chunk_index)
        data = self._source.read_range(span.start, span.end)
        checksum = sha256_hex(data) if self.send_checksums else None
        session_id = self._session.session_id

        def send() -> int:
            with self._cond:
                while self._paused and self._is_current(generation):
                    self._cond.wait()
                if not self._is_current(generation):
                    raise TransferCancelledError(f"Transfer stopped before chunk {chunk_index}")
                self._active += 1

            stored = False
            try:
                byte_length = self.transport.put_chunk(session_id, chunk_index, data, checksum)
                stored = True
                return byte_length
            finally:
                with self._cond:
                    # sends from a cancelled generation no longer count as in flight
                    if generation == self._generation:
                        self._active -= 1
                        if stored and self._failure is None:
                            self._uploaded.add(chunk_index)
                            self._state.sent_bytes += span.length
                            self._update_rates()
                            self._notify()
                        self._mark_paused_if_idle()
                    self._cond.notify_all()

        self._policy.send_with_retry(
            send,
            chunk_index,
            self._total_chunks,
            wait=lambda delay: self._wait_retry(generation, delay),
        )

    def _is_current(self, generation: int) -> bool:
        """True while ``generation`` is neither cancelled nor failed."""
        return generation == self._generation and self._failure is None

    def _wait_retry(self, generation: int, delay: float) -> bool:
        deadline = self._clock() + delay
        with self._cond:
            while self._is_current(generation):
                remaining = deadline - self._clock()
                if remaining <= 0:
                    return True
                self._cond.wait(remaining)
            return False

    def _fail(self, generation: int, chunk_index: int, error: Exception) -> None:
        with self._cond:
            if generation != self._generation or self._failure is not None:
                return
            self._failure = error if isinstance(error, UploadError) else UploadError(str(error))
            self._pending.clear()
            self._state.status = TransferStatus.ERROR
            self._state.last_error = f"Chunk {chunk_index}: {error}"
            self._state.eta_seconds = None
            self._notify()
            self._cond.notify_all()
        logger.error(
            f"Transfer of '{self._source.name}' failed at chunk {chunk_index}: {error}",
            exc_info=not isinstance(error, UploadError),
        )

    def _mark_paused_if_idle(self) -> None:
        if self._paused and self._active == 0 and self._state.status == TransferStatus.UPLOADING:
            self._state.status = TransferStatus.PAUSED
            self._state.speed_bps = 0.0
            self._state.eta_seconds = None
            self._notify()

    def _update_rates(self) -> None:
        elapsed = self._clock() - self._started_at
        sent_now = self._state.sent_bytes - self._resumed_bytes
        self._state.speed_bps = sent_now / elapsed if elapsed > 0 else 0.0
        if self._state.speed_bps > 0:
            remaining = self._state.total_bytes - self._state.sent_bytes
            self._state.eta_seconds = remaining / self._state.speed_bps
        else:
            self._state.eta_seconds = None

    def _notify(self) -> None:
        snapshot = self._state.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Transfer state subscriber raised")
