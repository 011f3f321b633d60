"""Synthetic batch reading generation."""

from __future__ import annotations

import random
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Optional

from app.schemas import BatchReading

# (low, span): values are sampled uniformly from [low, low + span).
TEMPERATURE_RANGE = (85.0, 10.0)
PRESSURE_RANGE = (2.1, 0.4)
PH_RANGE = (7.2, 0.6)
VISCOSITY_RANGE = (1200.0, 200.0)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadingGenerator:
    """Produces plausible batch readings from a random source and a clock."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock
        self._last_millis = 0
        self._lock = Lock()

    def generate(self, user_id: Optional[str] = None) -> BatchReading:
        timestamp = self._clock()
        return BatchReading(
            batch_id=f"BATCH-{self._next_millis(timestamp)}",
            timestamp=timestamp,
            temperature=self._sample(TEMPERATURE_RANGE),
            pressure=self._sample(PRESSURE_RANGE),
            ph=self._sample(PH_RANGE),
            viscosity=self._sample(VISCOSITY_RANGE),
            user_id=user_id,
        )

    def _sample(self, bounds: tuple[float, float]) -> float:
        low, span = bounds
        return low + self._rng.random() * span

    def _next_millis(self, timestamp: datetime) -> int:
        # Batch ids must stay unique even when two readings share a millisecond.
        millis = int(timestamp.timestamp() * 1000)
        with self._lock:
            if millis <= self._last_millis:
                millis = self._last_millis + 1
            self._last_millis = millis
            return millis
