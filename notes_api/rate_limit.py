"""
Notes API — Admission Gate (Write Rate Limiting)
=================================================

What:  Global gate admitting at most one write request per fixed interval.
Why:   Caps the rate of INSERT/UPDATE statements hitting the database.
How:   A single token refilled by a periodic tick; a write request takes the
       token or is rejected with 429 and a Retry-After hint.
Who:   Applied to POST /notes and PUT /notes/{id} through the
       `require_admission` dependency.

Algorithm: Single-token ticker
    1. Ticks happen at start + k * interval (k = 1, 2, ...)
    2. A tick fills the token slot if it is empty; a tick arriving while
       the slot is full is dropped (no accumulation, capacity is one)
    3. A request that finds the slot full empties it and proceeds
    4. A request that finds it empty is rejected until the next tick

    The slot starts full, so the first write after startup is admitted.

Scope:
    State is per process. Running N uvicorn workers admits up to N writes
    per interval.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request

from notes_api.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdmissionResult:
    """
    Outcome of AdmissionGate.try_acquire().

    Attributes:
        allowed: Whether the request may proceed.
        retry_after: Whole seconds until the next tick (None when allowed).
    """

    allowed: bool
    retry_after: Optional[int] = None


class AdmissionGate:
    """
    Fixed-capacity (one token), fixed-refill-rate admission gate.

    Args:
        interval_seconds: Time between ticks.
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._interval = float(interval_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._start = clock()
        self._next_tick = self._start + self._interval
        self._has_token = True

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def _advance(self, now: float) -> None:
        # Collapse every tick that fired since the last call into one refill
        if now < self._next_tick:
            return
        self._has_token = True
        elapsed_ticks = math.floor((now - self._start) / self._interval)
        self._next_tick = self._start + (elapsed_ticks + 1) * self._interval

    def try_acquire(self) -> AdmissionResult:
        """Take the token if one is available; never blocks."""
        with self._lock:
            now = self._clock()
            self._advance(now)

            if self._has_token:
                self._has_token = False
                return AdmissionResult(allowed=True)

            retry_after = max(1, math.ceil(self._next_tick - now))
            return AdmissionResult(allowed=False, retry_after=retry_after)


async def require_admission(request: Request) -> None:
    """
    FastAPI dependency guarding write routes.

    The gate lives on `app.state.admission_gate` (installed by create_app),
    so every route in one application shares a single token.

    Raises:
        RateLimitExceededError: the gate has no token (→ 429 + Retry-After)
    """
    gate: AdmissionGate = request.app.state.admission_gate
    result = gate.try_acquire()
    if not result.allowed:
        logger.warning(
            "Admission gate rejected %s %s, retry in %ds",
            request.method,
            request.url.path,
            result.retry_after,
        )
        raise RateLimitExceededError(retry_after=result.retry_after)
