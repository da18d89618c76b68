"""
Data Types Module for the Right Angle measurement core.

Plain data classes shared by the ROM tracker, the strength capture window,
the session state machine and the result aggregator.

Author: Right Angle Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional


class SessionStep(IntEnum):
    """
    The five measurement steps, in the order an operator walks through them.

    PREPARATION → BEND_TO_MAX → STRENGTH_SETUP → COMPLETE_ROM → FINALIZE
    """
    PREPARATION = 1
    BEND_TO_MAX = 2
    STRENGTH_SETUP = 3
    COMPLETE_ROM = 4
    FINALIZE = 5


class Trigger(Enum):
    """User trigger events."""
    ADVANCE = "advance"
    START_CAPTURE = "start_capture"
    END_SESSION = "end_session"


class Severity(Enum):
    """Notification severity tags."""
    DEFAULT = "default"
    SUCCESS = "success"


@dataclass(frozen=True)
class Sample:
    """
    One timestamped reading from the device.

    Attributes:
        timestamp: Epoch milliseconds.
        value: Degrees for angle samples, pounds for force samples.
    """
    timestamp: int
    value: float

    def to_dict(self) -> dict:
        return {'timestamp': self.timestamp, 'value': self.value}


@dataclass(frozen=True)
class TaggedSample:
    """A force sample tagged with whether it lies inside the capture interval."""
    sample: Sample
    relevant: bool

    def to_dict(self) -> dict:
        return {
            'timestamp': self.sample.timestamp,
            'value': self.sample.value,
            'relevant': self.relevant,
        }


@dataclass(frozen=True)
class RomTrack:
    """
    Range-of-motion accumulator.

    Attributes:
        initial: First angle seen during PREPARATION.
        max: Running maximum over BEND_TO_MAX..COMPLETE_ROM.
        final: Last angle seen during FINALIZE.
    """
    initial: Optional[float] = None
    max: Optional[float] = None
    final: Optional[float] = None


@dataclass
class CaptureWindow:
    """
    State of the strength test window.

    `buffer` holds the samples inside [start_time, end_time], deduplicated
    by timestamp, in order of first observation.
    """
    active: bool = False
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    buffer: List[Sample] = field(default_factory=list)

    def contains(self, timestamp: int) -> bool:
        if self.start_time is None or self.end_time is None:
            return False
        return self.start_time <= timestamp <= self.end_time


@dataclass(frozen=True)
class StrengthSummary:
    """Peak and mean force, rounded to 2 decimals."""
    max: float = 0.0
    avg: float = 0.0

    def to_dict(self) -> dict:
        return {'max': self.max, 'avg': self.avg}


@dataclass(frozen=True)
class SessionResult:
    """
    Summary handed to the results store once per session.

    Attributes:
        rom: Selected range-of-motion value (degrees).
        strength: Peak/mean force over the capture buffer.
        samples: Every buffered force sample with its relevance tag.
        baseline: True when the session sets a baseline.
        session_id: Identifier of the session that produced the result.
    """
    rom: float
    strength: StrengthSummary
    samples: List[TaggedSample] = field(default_factory=list)
    baseline: bool = False
    session_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'session_id': self.session_id,
            'rom': self.rom,
            'strength': self.strength.to_dict(),
            'samples': [s.to_dict() for s in self.samples],
            'baseline': self.baseline,
        }


@dataclass(frozen=True)
class Notification:
    """Short human-readable message for the notification collaborator."""
    title: str
    message: str
    severity: Severity = Severity.DEFAULT


@dataclass(frozen=True)
class StepInstruction:
    """Title and body text shown for a step."""
    title: str
    text: str


@dataclass
class PresentationHints:
    """
    Read-only view of the session for an external renderer.

    Nothing in here is fed back into the state machine.
    """
    step: SessionStep = SessionStep.PREPARATION
    instruction: Optional[StepInstruction] = None
    page_title: str = ""
    end_button_text: str = ""
    chart_label: str = ""
    live_rom: Optional[float] = None
    max_rom: Optional[float] = None
    countdown: int = 0
    capture_in_progress: bool = False
    capture_enabled: bool = False
    live_force_points: List[TaggedSample] = field(default_factory=list)
    baseline: bool = False
    session_open: bool = True


# Events accepted by MeasurementSessionController.handle()

@dataclass(frozen=True)
class AngleSampleReceived:
    sample: Sample


@dataclass(frozen=True)
class ForceSampleReceived:
    sample: Sample


@dataclass(frozen=True)
class CountdownTick:
    """
    One countdown second. `generation` is the capture window the tick was
    scheduled for (StrengthCaptureWindow.starts); None applies to any window.
    """
    generation: Optional[int] = None


@dataclass(frozen=True)
class UserTriggered:
    trigger: Trigger


@dataclass(frozen=True)
class SessionRestartRequested:
    pass
