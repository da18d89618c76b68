"""
Core Module for the Right Angle measurement package.

Contains data types, the ROM reducer, the strength capture window and
the session state machine.
"""

from .data_types import (
    SessionStep, Trigger, Severity, Sample, TaggedSample, RomTrack, CaptureWindow,
    StrengthSummary, SessionResult, Notification, StepInstruction, PresentationHints,
    AngleSampleReceived, ForceSampleReceived, CountdownTick, UserTriggered,
    SessionRestartRequested,
)
from .rom_tracker import track_rom
from .capture import StrengthCaptureWindow
from .session_machine import (
    MeasurementSessionController, MeasurementConfig, ResultsStore, epoch_ms,
)

__all__ = [
    # Data types
    'SessionStep', 'Trigger', 'Severity', 'Sample', 'TaggedSample', 'RomTrack',
    'CaptureWindow', 'StrengthSummary', 'SessionResult', 'Notification',
    'StepInstruction', 'PresentationHints',

    # Events
    'AngleSampleReceived', 'ForceSampleReceived', 'CountdownTick', 'UserTriggered',
    'SessionRestartRequested',

    # Tracking and capture
    'track_rom', 'StrengthCaptureWindow',

    # State machine
    'MeasurementSessionController', 'MeasurementConfig', 'ResultsStore', 'epoch_ms',
]
