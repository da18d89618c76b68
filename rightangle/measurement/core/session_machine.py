"""
Measurement Session Module.

Finite state machine driving a five-step measurement session:

    ┌────────────────────────────────────────────────────────────────┐
    │                                                                │
    │  PREPARATION ─Advance─► BEND_TO_MAX ─Advance─► STRENGTH_SETUP  │
    │                                                  │   ▲         │
    │                                    StartCapture ─┘   │         │
    │                                                      │         │
    │              countdown reaches 0 (automatic) ◄───────┘         │
    │                        │                                       │
    │                        ▼                                       │
    │                  COMPLETE_ROM ─Advance─► FINALIZE ─EndSession─►│
    │                                                                │
    └────────────────────────────────────────────────────────────────┘

All state is owned by the controller and changed only through handle().
Angle samples, force samples, countdown ticks and user triggers all come
in through that single entry point, so callers that serialize calls to
handle() need no locking.

Author: Right Angle Team
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol
import logging
import time

from .capture import StrengthCaptureWindow
from .data_types import (
    AngleSampleReceived, CountdownTick, ForceSampleReceived, Notification,
    PresentationHints, RomTrack, Sample, SessionRestartRequested, SessionResult,
    SessionStep, Trigger, UserTriggered,
)
from .rom_tracker import track_rom
from ..modules import instructions
from ..modules.aggregator import DEFAULT_ROM_FALLBACK, ResultAggregator
from ..utils.logger import LogCategory, SessionLogger

logger = logging.getLogger(__name__)


class ResultsStore(Protocol):
    """Receives the finished result of a session."""

    def save(self, result: SessionResult) -> None:
        ...


@dataclass
class MeasurementConfig:
    """
    Timing and fallback parameters.

    Attributes:
        capture_duration_ms: Nominal strength window length.
        countdown_seconds: Ticks before the window closes.
        rom_fallback_deg: ROM reported when no angle was ever seen.
        strict_capture_window: Clamp the window end to its scheduled end
            when the countdown fires late.
    """
    capture_duration_ms: int = 3000
    countdown_seconds: int = 3
    rom_fallback_deg: float = DEFAULT_ROM_FALLBACK
    strict_capture_window: bool = False


def epoch_ms() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


class MeasurementSessionController:
    """
    Session controller for one operator-guided measurement.

    Triggers that are not valid in the current step are ignored and
    logged, never raised.

    Example:
        >>> controller = MeasurementSessionController(results_store=store)
        >>> controller.push_angle(t, 5.0)
        >>> controller.advance()
        >>> ...
        >>> controller.start_capture()
        >>> controller.push_force(t, 18.2)
        >>> controller.tick(); controller.tick(); controller.tick()
        >>> controller.step
        <SessionStep.COMPLETE_ROM: 4>
    """

    def __init__(
        self,
        baseline: bool = False,
        results_store: Optional[ResultsStore] = None,
        config: Optional[MeasurementConfig] = None,
        clock: Optional[Callable[[], int]] = None,
        session_id: Optional[str] = None,
        session_logger: Optional[SessionLogger] = None,
    ):
        """
        Initialize the controller.

        Args:
            baseline: Session sets a baseline rather than a regular measurement.
            results_store: Receives the SessionResult on EndSession.
            config: Timing and fallback parameters.
            clock: Returns epoch milliseconds, defaults to wall time.
            session_id: Identifier copied into the result.
            session_logger: Journal for diagnostics.
        """
        self._baseline = baseline
        self._results_store = results_store
        self._config = config or MeasurementConfig()
        self._clock = clock or epoch_ms
        self._session_id = session_id
        self._session_logger = session_logger or SessionLogger(session_id or "local")

        self._aggregator = ResultAggregator(rom_fallback=self._config.rom_fallback_deg)
        self._capture = StrengthCaptureWindow(
            duration_ms=self._config.capture_duration_ms,
            countdown_seconds=self._config.countdown_seconds,
            strict_end=self._config.strict_capture_window,
        )

        self._step = SessionStep.PREPARATION
        self._rom_track = RomTrack()
        self._live_rom: Optional[float] = None
        self._session_open = True
        self._last_result: Optional[SessionResult] = None

        # Callbacks
        self._on_step_change: Optional[Callable[[SessionStep, SessionStep], None]] = None
        self._on_notification: Optional[Callable[[Notification], None]] = None
        self._on_feed_reset: Optional[Callable[[], None]] = None

    @property
    def step(self) -> SessionStep:
        return self._step

    @property
    def baseline(self) -> bool:
        return self._baseline

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def rom_track(self) -> RomTrack:
        return self._rom_track

    @property
    def capture(self) -> StrengthCaptureWindow:
        return self._capture

    @property
    def live_rom(self) -> Optional[float]:
        return self._live_rom

    @property
    def capture_in_progress(self) -> bool:
        return self._capture.active

    @property
    def capture_enabled(self) -> bool:
        return self._session_open and self._step == SessionStep.STRENGTH_SETUP and not self._capture.active

    @property
    def session_open(self) -> bool:
        return self._session_open

    @property
    def last_result(self) -> Optional[SessionResult]:
        return self._last_result

    @property
    def session_logger(self) -> SessionLogger:
        return self._session_logger

    @property
    def hints(self) -> PresentationHints:
        """Snapshot of everything a renderer needs."""
        capturing = self._capture.active
        return PresentationHints(
            step=self._step,
            instruction=instructions.step_instruction(self._step, self._baseline),
            page_title=instructions.page_title(self._baseline),
            end_button_text=instructions.end_button_text(self._baseline),
            chart_label=instructions.chart_label(self._baseline, capturing),
            live_rom=self._live_rom,
            max_rom=self._rom_track.max,
            countdown=self._capture.remaining if capturing else 0,
            capture_in_progress=capturing,
            capture_enabled=self.capture_enabled,
            live_force_points=self._capture.tagged_live_points() if capturing else [],
            baseline=self._baseline,
            session_open=self._session_open,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        (Re-)enter PREPARATION with empty state.

        Any open capture window and its countdown are discarded and the
        sample feeds are told to restart from empty history.
        """
        if self._capture.active:
            logger.info(f"[SESSION] {self._session_id}: restart cancels running capture")
        self._reset_state()
        self._session_open = True
        self._last_result = None
        if self._on_feed_reset:
            self._on_feed_reset()
        self._session_logger.info(LogCategory.SYSTEM, "Session started", {'baseline': self._baseline})

    def _reset_state(self) -> None:
        self._step = SessionStep.PREPARATION
        self._rom_track = RomTrack()
        self._live_rom = None
        self._capture.reset()

    # ------------------------------------------------------------------
    # Event entry point
    # ------------------------------------------------------------------

    def handle(self, event) -> Optional[SessionResult]:
        """
        Process one event.

        Args:
            event: AngleSampleReceived, ForceSampleReceived, CountdownTick,
                UserTriggered or SessionRestartRequested.

        Returns:
            The SessionResult when the event ended the session, else None.
        """
        if isinstance(event, AngleSampleReceived):
            if self._session_open:
                self._handle_angle(event.sample)
            return None
        if isinstance(event, ForceSampleReceived):
            if self._session_open:
                self._capture.offer(event.sample)
            return None
        if isinstance(event, CountdownTick):
            if self._session_open:
                self._handle_tick(event.generation)
            return None
        if isinstance(event, UserTriggered):
            if not self._session_open:
                self._ignore(event.trigger, "session closed")
                return None
            return self._handle_trigger(event.trigger)
        if isinstance(event, SessionRestartRequested):
            self.start()
            return None
        raise TypeError(f"Unsupported event: {event!r}")

    # Convenience wrappers around handle()

    def push_angle(self, timestamp: int, value: float) -> None:
        self.handle(AngleSampleReceived(Sample(timestamp, value)))

    def push_force(self, timestamp: int, value: float) -> None:
        self.handle(ForceSampleReceived(Sample(timestamp, value)))

    def tick(self, generation: Optional[int] = None) -> None:
        self.handle(CountdownTick(generation))

    def advance(self) -> None:
        self.handle(UserTriggered(Trigger.ADVANCE))

    def start_capture(self) -> None:
        self.handle(UserTriggered(Trigger.START_CAPTURE))

    def end_session(self) -> Optional[SessionResult]:
        return self.handle(UserTriggered(Trigger.END_SESSION))

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_angle(self, sample: Sample) -> None:
        self._live_rom = sample.value
        self._rom_track = track_rom(self._rom_track, self._step, sample.value)

    def _handle_tick(self, generation: Optional[int] = None) -> None:
        if generation is not None and generation != self._capture.starts:
            logger.debug(
                f"[SESSION] {self._session_id}: dropped tick for capture {generation}, "
                f"current is {self._capture.starts}"
            )
            return
        if not self._capture.tick(self._clock()):
            return

        window = self._capture.window
        self._session_logger.info(LogCategory.CAPTURE, "Capture completed", {
            'start_time': window.start_time,
            'end_time': window.end_time,
            'buffered': len(window.buffer),
        })
        if self._step == SessionStep.STRENGTH_SETUP:
            self._change_step(SessionStep.COMPLETE_ROM, automatic=True)
        self._notify(instructions.CAPTURE_COMPLETED)

    def _handle_trigger(self, trigger: Trigger) -> Optional[SessionResult]:
        if trigger == Trigger.ADVANCE:
            self._handle_advance()
        elif trigger == Trigger.START_CAPTURE:
            self._handle_start_capture()
        elif trigger == Trigger.END_SESSION:
            return self._handle_end_session()
        return None

    def _handle_advance(self) -> None:
        next_step = {
            SessionStep.PREPARATION: SessionStep.BEND_TO_MAX,
            SessionStep.BEND_TO_MAX: SessionStep.STRENGTH_SETUP,
            SessionStep.COMPLETE_ROM: SessionStep.FINALIZE,
        }.get(self._step)

        if next_step is None:
            reason = "capture in progress" if self._capture.active else "no advance from this step"
            self._ignore(Trigger.ADVANCE, reason)
            return

        self._change_step(next_step)
        prompt = instructions.advance_prompt(next_step)
        if prompt:
            self._notify(prompt)

    def _handle_start_capture(self) -> None:
        if self._step != SessionStep.STRENGTH_SETUP:
            self._ignore(Trigger.START_CAPTURE, "capture only available in strength setup")
            return

        now = self._clock()
        self._capture.start(now)
        self._session_logger.info(LogCategory.CAPTURE, "Capture started", {
            'start_time': self._capture.window.start_time,
            'end_time': self._capture.window.end_time,
        })
        self._notify(instructions.CAPTURE_STARTED)

    def _handle_end_session(self) -> Optional[SessionResult]:
        result = self.prepare_result()
        if result is None:
            return None

        # Store errors propagate; state stays intact so EndSession can be retried
        if self._results_store is not None:
            self._results_store.save(result)

        self.finish_session(result)
        return result

    def prepare_result(self) -> Optional[SessionResult]:
        """
        First half of EndSession: aggregate without closing the session.

        Callers that persist the result themselves (for instance off the
        event loop) call this, save the result, then finish_session().
        An EndSession that is not valid now is logged and gives None.
        """
        if not self._session_open:
            self._ignore(Trigger.END_SESSION, "session closed")
            return None
        if self._step != SessionStep.FINALIZE:
            self._ignore(Trigger.END_SESSION, "session can only end from finalize")
            return None

        return self._aggregator.aggregate(
            self._rom_track,
            self._capture.window,
            live_rom=self._live_rom,
            baseline=self._baseline,
            session_id=self._session_id,
        )

    def finish_session(self, result: SessionResult) -> None:
        """Second half of EndSession, once the result has been stored."""
        self._last_result = result
        self._session_logger.log_result(result.to_dict())
        logger.info(
            f"[SESSION] {self._session_id}: ended rom={result.rom} "
            f"max={result.strength.max} avg={result.strength.avg} baseline={self._baseline}"
        )

        self._reset_state()
        self._session_open = False
        self._notify(instructions.session_ended(result))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _change_step(self, new_step: SessionStep, automatic: bool = False) -> None:
        old_step = self._step
        self._step = new_step
        self._session_logger.log_step_change(int(old_step), int(new_step), automatic)
        if self._on_step_change:
            self._on_step_change(old_step, new_step)

    def _ignore(self, trigger: Trigger, reason: str) -> None:
        logger.info(
            f"[SESSION] {self._session_id}: ignored {trigger.value} in step {int(self._step)} ({reason})"
        )
        self._session_logger.log_ignored_trigger(trigger.value, int(self._step), reason)

    def _notify(self, notification: Notification) -> None:
        if self._on_notification:
            self._on_notification(notification)

    def set_on_step_change(self, callback: Callable[[SessionStep, SessionStep], None]) -> None:
        """Set callback for step transitions."""
        self._on_step_change = callback

    def set_on_notification(self, callback: Callable[[Notification], None]) -> None:
        """Set callback for user-facing notifications."""
        self._on_notification = callback

    def set_on_feed_reset(self, callback: Callable[[], None]) -> None:
        """Set callback telling the sample feeds to drop their history."""
        self._on_feed_reset = callback
