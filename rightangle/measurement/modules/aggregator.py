"""
Result Aggregator Module.

Reduces the finished session state to a SessionResult.
"""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..core.data_types import (
    CaptureWindow, RomTrack, Sample, SessionResult, StrengthSummary, TaggedSample,
)

DEFAULT_ROM_FALLBACK = 90.0


@dataclass
class ResultAggregator:
    """
    Builds the session summary.

    Degraded data never raises: a missing ROM falls back to
    `rom_fallback`, an empty force buffer gives zero aggregates.
    """

    rom_fallback: float = DEFAULT_ROM_FALLBACK

    def select_rom(self, track: RomTrack, live_rom: Optional[float]) -> float:
        """
        Pick the ROM to report.

        Order: tracked maximum, then the latest live angle, then the fallback.
        """
        if track.max is not None:
            return float(track.max)
        if live_rom is not None:
            return float(live_rom)
        return float(self.rom_fallback)

    def summarize_strength(self, buffer: List[Sample]) -> StrengthSummary:
        """
        Peak and mean force, both rounded to 2 decimals.

        Args:
            buffer: Window-filtered, deduplicated force samples

        Returns:
            StrengthSummary with zeros when the buffer is empty
        """
        if not buffer:
            return StrengthSummary(max=0.0, avg=0.0)

        values = np.array([s.value for s in buffer], dtype=np.float64)
        return StrengthSummary(
            max=round(float(np.max(values)), 2),
            avg=round(float(np.mean(values)), 2),
        )

    def aggregate(self,
                  track: RomTrack,
                  window: CaptureWindow,
                  live_rom: Optional[float] = None,
                  baseline: bool = False,
                  session_id: Optional[str] = None) -> SessionResult:
        """
        Produce the SessionResult. Reads but never mutates its inputs.

        Peak and mean only count samples inside the final interval, which
        is narrower than the nominal one when the countdown fired early.
        """
        samples = [TaggedSample(s, window.contains(s.timestamp)) for s in window.buffer]
        relevant = [t.sample for t in samples if t.relevant]
        return SessionResult(
            rom=self.select_rom(track, live_rom),
            strength=self.summarize_strength(relevant),
            samples=samples,
            baseline=baseline,
            session_id=session_id,
        )
