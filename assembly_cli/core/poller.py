"""Polling state machine for asynchronous transcription jobs.

WHY: The service has no webhook or push notification for this client.
After submission (or when resuming from a known job ID) the only way to
learn the outcome is to ask the status endpoint repeatedly until the
job reaches "completed" or "error".

HOW: TranscriptPoller runs a blocking loop: GET the status, inspect the
"status" field, and either hand the payload to the result sink, raise
the service-reported error, or sleep a fixed interval and try again.
Time is injected (sleep and clock callables) so tests can run the loop
without real delay, and a threading.Event aborts it promptly.

RULES:
- PENDING → COMPLETED | FAILED, plus TIMED_OUT and CANCELLED when a
  budget or cancellation stops the loop
- Fixed interval between non-terminal checks (default 10s), no backoff
- "error" is terminal: no retry and no sleep
- A missing "status" field raises MissingField
- max_attempts / timeout are unbounded unless set
- At least one request is made; no sleep runs past the timeout
- COMPLETED is set only once the sink has written the payload
- The cancel event is checked before every request and every sleep
- Re-polling a completed job fetches and writes the payload again
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from assembly_cli.api.client import AssemblyClient
from assembly_cli.api.models import (
    STATUS_COMPLETED,
    STATUS_ERROR,
    STATUS_QUEUED,
)
from assembly_cli.config import DEFAULT_POLL_INTERVAL_S
from assembly_cli.core.storage import write_transcript
from assembly_cli.errors import (
    AssemblyError,
    MalformedResponse,
    MissingField,
    PollCancelled,
    PollTimeoutError,
    ServiceReportedError,
)

logger = logging.getLogger(__name__)

Sink = Callable[[str, Any], Path]


class PollState(str, enum.Enum):
    """States of one polling run.

    HOW: Inherits from str so values log and compare cleanly.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass
class PollResult:
    """Outcome of a successful poll.

    RULES:
    - payload is the full "completed" response, unmodified
    - attempts counts GET requests issued, including the final one
    - output_path is None when the poller runs without a sink
    """

    job_id: str
    payload: Any
    attempts: int
    output_path: Optional[Path] = None


class TranscriptPoller:
    """Wait for one transcription job to reach a terminal state.

    WHY: The poll loop is the only stateful part of the client. Keeping
    it in one class with injected time, budget, and cancellation makes
    every transition testable.

    HOW: poll() loops over client.get_transcript(). On "completed" the
    sink writes the payload; on "error" ServiceReportedError is raised;
    otherwise the poller sleeps for `interval` seconds.

    RULES:
    - sleep defaults to waiting on the cancel event, so cancel() wakes it
    - clock must be monotonic (default time.monotonic)
    - sink defaults to write_transcript (CWD); pass None to skip writing
    - on_status receives human-readable progress lines
    """

    def __init__(
        self,
        client: AssemblyClient,
        interval: float = DEFAULT_POLL_INTERVAL_S,
        max_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
        sink: Optional[Sink] = write_transcript,
        sleep: Optional[Callable[[float], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        cancel_event: Optional[threading.Event] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must not be negative")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if timeout is not None and timeout < 0:
            raise ValueError("timeout must not be negative")

        self._client = client
        self._interval = interval
        self._max_attempts = max_attempts
        self._timeout = timeout
        self._sink = sink
        self._cancel = cancel_event or threading.Event()
        self._sleep = sleep or self._cancel.wait
        self._clock = clock
        self._on_status = on_status
        self.state = PollState.PENDING

    def cancel(self) -> None:
        """Ask a running poll() to stop before its next request or sleep."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _status(self, msg: str) -> None:
        if self._on_status:
            self._on_status(msg)

    def _check_cancelled(self, job_id: str) -> None:
        if self._cancel.is_set():
            self.state = PollState.CANCELLED
            raise PollCancelled(f"Polling for transcript {job_id} was cancelled")

    def _next_sleep(self, job_id: str, start: float) -> float:
        """Return how long to sleep before the next request.

        The sleep never runs past the deadline, so the last request
        lands on it instead of one interval later.
        """
        if self._timeout is None:
            return self._interval
        elapsed = self._clock() - start
        remaining = self._timeout - elapsed
        if remaining <= 0:
            self.state = PollState.TIMED_OUT
            raise PollTimeoutError(
                f"Transcript {job_id} timed out after {elapsed:.0f}s "
                f"(limit: {self._timeout:.0f}s)"
            )
        return min(self._interval, remaining)

    def poll(self, job_id: str) -> PollResult:
        """Poll until the job completes, fails, times out, or is cancelled.

        Args:
            job_id: The transcription job identifier.

        Returns:
            PollResult carrying the completed payload.

        Raises:
            ServiceReportedError: The service reported status "error".
            MissingField: A status response had no "status" key.
            PollTimeoutError: max_attempts or timeout was exhausted.
            PollCancelled: The cancel event was set.
            TransportError, MalformedResponse: from the client.
            StorageError: from the sink.
        """
        self.state = PollState.PENDING
        attempts = 0
        start = self._clock()
        logger.info("Polling %s every %.1fs", self._client.polling_url(job_id), self._interval)

        try:
            while True:
                self._check_cancelled(job_id)

                attempts += 1
                payload = self._client.get_transcript(job_id)
                status = _status_of(payload)
                logger.debug("Transcript %s attempt %d: status=%s", job_id, attempts, status)

                if status == STATUS_COMPLETED:
                    self._status("Transcription complete.")
                    output_path = self._sink(job_id, payload) if self._sink else None
                    self.state = PollState.COMPLETED
                    return PollResult(
                        job_id=job_id,
                        payload=payload,
                        attempts=attempts,
                        output_path=output_path,
                    )

                if status == STATUS_ERROR:
                    self.state = PollState.FAILED
                    error = ServiceReportedError(job_id, payload.get("error"))
                    self._status(f"Transcription error: {error.error}")
                    raise error

                elapsed = int(self._clock() - start)
                if status == STATUS_QUEUED:
                    self._status("Transcription queued...")
                else:
                    self._status(
                        f"Transcribing... (elapsed: {elapsed // 60}m {elapsed % 60:02d}s)"
                    )

                if self._max_attempts is not None and attempts >= self._max_attempts:
                    self.state = PollState.TIMED_OUT
                    raise PollTimeoutError(
                        f"Transcript {job_id} still '{status}' after "
                        f"{attempts} attempt(s)"
                    )

                delay = self._next_sleep(job_id, start)
                self._check_cancelled(job_id)
                self._sleep(delay)
        except AssemblyError:
            if self.state is PollState.PENDING:
                self.state = PollState.FAILED
            raise


def _status_of(payload: Any) -> str:
    """Return the "status" string of a poll response."""
    if not isinstance(payload, dict) or "status" not in payload:
        raise MissingField("status", payload)
    status = payload["status"]
    if not isinstance(status, str):
        raise MalformedResponse(
            "'status' must be a string, got {!r}".format(status)
        )
    return status
