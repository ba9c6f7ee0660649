from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Literal, Mapping

logger = logging.getLogger("scratch.github")


@dataclass(frozen=True)
class RateLimitState:
    kind: Literal["NORMAL", "LIMITED"]
    reset_at: float | None = None


NORMAL = RateLimitState("NORMAL")


def _int_header(headers: Mapping[str, str], name: str) -> int | None:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(float(raw))
    except ValueError:
        return None


class RateLimitTracker:
    """NORMAL -> LIMITED(reset_at) -> NORMAL, driven by what GitHub reports.

    LIMITED is left lazily: the first read at or after `reset_at` flips the
    state back, so no timer is needed.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._state = NORMAL

    @property
    def state(self) -> RateLimitState:
        if self._state.kind == "LIMITED" and self._state.reset_at is not None:
            if self._clock() >= self._state.reset_at:
                logger.info("rate_limit_cleared", extra={"reset_at": self._state.reset_at})
                self._state = NORMAL
        return self._state

    @property
    def limited(self) -> bool:
        return self.state.kind == "LIMITED"

    def retry_after_s(self) -> int:
        state = self.state
        if state.reset_at is None:
            return 0
        return max(0, math.ceil(state.reset_at - self._clock()))

    def limit_until(self, reset_at: float) -> None:
        if reset_at <= self._clock():
            return
        current = self.state
        if current.kind == "LIMITED" and current.reset_at is not None and current.reset_at >= reset_at:
            return
        self._state = RateLimitState("LIMITED", reset_at)
        logger.warning("rate_limited", extra={"reset_at": reset_at})

    def observe_core(self, remaining: int | None, reset: int | None) -> None:
        """Record a `resources.core` snapshot from `GET /rate_limit`."""
        if remaining == 0 and reset:
            self.limit_until(float(reset))

    def observe_response(self, status_code: int, headers: Mapping[str, str]) -> bool:
        """Record the rate-limit signal carried by a response.

        Returns True when the response was rejected because of a limit that is
        still in force; a 403/429 whose signal has already expired is not one.
        """
        remaining = _int_header(headers, "x-ratelimit-remaining")
        reset = _int_header(headers, "x-ratelimit-reset")
        retry_after = _int_header(headers, "retry-after")

        if retry_after is not None and status_code in (403, 429):
            self.limit_until(self._clock() + retry_after)
            return self.limited
        if remaining == 0 and reset:
            self.limit_until(float(reset))
            return status_code in (403, 429) and self.limited
        return False
