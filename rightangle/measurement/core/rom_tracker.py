"""
ROM Tracker Module.

Step-gated reducer over the RomTrack accumulator:

    PREPARATION                          → initial (first sample only)
    BEND_TO_MAX / STRENGTH_SETUP /
    COMPLETE_ROM                         → max (running maximum)
    FINALIZE                             → final (last write wins)

No angle history is kept here.
"""

from dataclasses import replace

from .data_types import RomTrack, SessionStep

MAX_TRACKING_STEPS = (
    SessionStep.BEND_TO_MAX,
    SessionStep.STRENGTH_SETUP,
    SessionStep.COMPLETE_ROM,
)


def track_rom(track: RomTrack, step: SessionStep, angle: float) -> RomTrack:
    """
    Fold one angle sample into the accumulator.

    Args:
        track: Current accumulator (not modified).
        step: Step active when the sample arrived.
        angle: Angle value in degrees.

    Returns:
        RomTrack: The updated accumulator.
    """
    if step == SessionStep.PREPARATION:
        if track.initial is None:
            return replace(track, initial=angle)
        return track

    if step in MAX_TRACKING_STEPS:
        current = track.max if track.max is not None else angle
        return replace(track, max=max(current, angle))

    if step == SessionStep.FINALIZE:
        return replace(track, final=angle)

    return track
