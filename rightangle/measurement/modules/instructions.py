"""
Step Instructions Module.

Operator-facing text for each measurement step, plus the notifications
raised on major transitions. Baseline sessions get their own wording.
"""

from typing import Dict

from ..core.data_types import Notification, SessionResult, Severity, SessionStep, StepInstruction

_STEP_TEXT: Dict[SessionStep, tuple] = {
    SessionStep.PREPARATION: (
        "Step 1: Preparation",
        "Start with your arm fully extended. Ensure the device is securely fitted. "
        "Click 'Start Bending Arm' when ready.",
    ),
    SessionStep.BEND_TO_MAX: (
        "Step 2: Bend to Maximum ROM",
        "Slowly bend your arm to the maximum comfortable angle. The device will track "
        "your range of motion. Click 'Reached Maximum Angle' when you can't bend further.",
    ),
    SessionStep.STRENGTH_SETUP: (
        "Step 3: Strength Test Setup",
        "Lock the brace at your maximum angle. When ready, press 'Start Strength Test' "
        "and PUSH against the brace with maximum force for 3 seconds.",
    ),
    SessionStep.COMPLETE_ROM: (
        "Step 4: Complete ROM",
        "Strength test complete! Unlock the brace and return your arm to the starting "
        "position. Click 'Complete ROM' when finished.",
    ),
}

# Prompts raised when Advance lands on a step
_ADVANCE_PROMPTS: Dict[SessionStep, Notification] = {
    SessionStep.BEND_TO_MAX: Notification(
        "Step 2", "Continue bending your arm to maximum comfortable angle."),
    SessionStep.STRENGTH_SETUP: Notification(
        "Step 3", "Lock the brace at your maximum angle and prepare for strength test."),
    SessionStep.FINALIZE: Notification(
        "Final Step", "Complete the ROM measurement and finalize."),
}

CAPTURE_STARTED = Notification(
    "Strength Test Started!",
    "Push against the brace with maximum force for 3 seconds.",
)

CAPTURE_COMPLETED = Notification(
    "Strength Test Complete",
    "Data captured. Continue ROM measurement.",
    Severity.SUCCESS,
)


def page_title(baseline: bool) -> str:
    return "Set Baseline Measurement" if baseline else "Take New Measurement"


def end_button_text(baseline: bool) -> str:
    return "Save Baseline" if baseline else "End Test & View Results"


def chart_label(baseline: bool, capturing: bool) -> str:
    suffix = " (Baseline)" if baseline else ""
    if capturing:
        return f"Live Strength Test{suffix} (lbs)"
    return f"Measurement Data{suffix}"


def step_instruction(step: SessionStep, baseline: bool = False) -> StepInstruction:
    """Title and body text for a step."""
    if step == SessionStep.FINALIZE:
        return StepInstruction(
            title=f"Step 5: Finalize {'Baseline' if baseline else 'Test'}",
            text=f"Press '{end_button_text(baseline)}' to save your measurement results.",
        )
    title, text = _STEP_TEXT[step]
    if baseline:
        title = f"{title} (Baseline)"
    return StepInstruction(title=title, text=text)


def advance_prompt(step: SessionStep):
    """Notification for landing on `step` via Advance, or None."""
    return _ADVANCE_PROMPTS.get(step)


def session_ended(result: SessionResult) -> Notification:
    """Summary notification raised after the result is handed off."""
    if result.baseline:
        return Notification(
            "Baseline Saved!",
            f"Baseline ROM: {result.rom:g}°, Avg Force: {result.strength.avg:g} lbs. Saved.",
            Severity.SUCCESS,
        )
    return Notification(
        "Test Ended!",
        f"Test Ended! ROM: {result.rom:g}°, Avg Strength: {result.strength.avg:g} lbs. Results saved.",
        Severity.SUCCESS,
    )
