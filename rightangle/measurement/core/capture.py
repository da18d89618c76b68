"""
Strength Capture Module.

Handles the timed strength test: a fixed-duration window that buffers
force samples falling inside it and closes on a one-second countdown.
"""

from dataclasses import dataclass, field
from typing import List, Set
import logging

from .data_types import CaptureWindow, Sample, TaggedSample

logger = logging.getLogger(__name__)


@dataclass
class StrengthCaptureWindow:
    """
    Time-windowed force sample buffer.

    Only one window exists at a time. Calling start() again discards the
    previous buffer and interval.
    """

    # Capture parameters
    duration_ms: int = 3000
    countdown_seconds: int = 3
    strict_end: bool = False  # clamp end_time to the scheduled end on expiry

    # State
    window: CaptureWindow = field(default_factory=CaptureWindow)
    remaining: int = 0
    starts: int = 0  # number of windows opened so far
    live_points: List[Sample] = field(default_factory=list)
    _buffered_timestamps: Set[int] = field(default_factory=set, repr=False)

    @property
    def active(self) -> bool:
        return self.window.active

    def start(self, now_ms: int):
        """Open a fresh window starting at now_ms."""
        if self.window.active:
            logger.info(
                f"[CAPTURE] Restart discards {len(self.window.buffer)} buffered samples"
            )
        self.window = CaptureWindow(
            active=True,
            start_time=now_ms,
            end_time=now_ms + self.duration_ms,
        )
        self._buffered_timestamps = set()
        self.live_points = []
        self.remaining = self.countdown_seconds
        self.starts += 1

    def offer(self, sample: Sample) -> bool:
        """
        Offer a force sample to the window.

        Returns:
            True if the sample was appended to the buffer
        """
        if not self.window.active:
            return False

        self.live_points.append(sample)

        if not self.window.contains(sample.timestamp):
            return False
        if sample.timestamp in self._buffered_timestamps:
            return False

        self.window.buffer.append(sample)
        self._buffered_timestamps.add(sample.timestamp)
        return True

    def tick(self, now_ms: int) -> bool:
        """
        Advance the countdown by one second.

        Returns:
            True exactly once per window, on the tick that closes it
        """
        if not self.window.active:
            return False

        self.remaining = max(self.remaining - 1, 0)
        if self.remaining > 0:
            return False

        self._complete(now_ms)
        return True

    def _complete(self, now_ms: int):
        """Close the window at now_ms."""
        if self.strict_end and self.window.end_time is not None:
            self.window.end_time = min(self.window.end_time, now_ms)
        else:
            self.window.end_time = now_ms
        self.window.active = False
        self.live_points = []

    def tagged_buffer(self) -> List[TaggedSample]:
        """Buffered samples tagged by interval membership."""
        return [TaggedSample(s, self.window.contains(s.timestamp)) for s in self.window.buffer]

    def tagged_live_points(self) -> List[TaggedSample]:
        """Samples seen while the window is open, for live charting."""
        return [TaggedSample(s, self.window.contains(s.timestamp)) for s in self.live_points]

    def reset(self):
        """Drop the window entirely."""
        self.window = CaptureWindow()
        self._buffered_timestamps = set()
        self.live_points = []
        self.remaining = 0
