import pytest

from rightangle.measurement.core import (
    MeasurementConfig, MeasurementSessionController, SessionStep, Severity,
)
from rightangle.measurement.utils.logger import LogCategory


def _to_strength_setup(ctrl):
    ctrl.advance()
    ctrl.advance()
    assert ctrl.step == SessionStep.STRENGTH_SETUP


def _run_countdown(ctrl, clock, step_ms=1000):
    for _ in range(3):
        clock.advance(step_ms)
        ctrl.tick()


def test_starts_in_preparation(controller):
    assert controller.step == SessionStep.PREPARATION
    assert controller.session_open
    assert not controller.capture_in_progress
    assert not controller.capture_enabled


def test_reference_scenario(controller, clock, store):
    controller.push_angle(clock.now, 5.0)
    controller.advance()
    controller.push_angle(clock.now, 90.0)
    controller.advance()
    controller.push_angle(clock.now, 95.0)

    controller.start_capture()
    start = clock.now
    controller.push_force(start + 100, 10.0)
    controller.push_force(start + 1500, 25.0)
    controller.push_force(start + 2900, 18.0)
    _run_countdown(controller, clock)
    assert controller.step == SessionStep.COMPLETE_ROM

    controller.advance()
    assert controller.step == SessionStep.FINALIZE
    result = controller.end_session()

    assert result.rom == 95.0
    assert result.strength.max == 25.0
    assert result.strength.avg == 17.67
    assert [s.relevant for s in result.samples] == [True, True, True]
    assert store.results == [result]


def test_initial_rom_is_first_preparation_sample(controller, clock):
    controller.push_angle(clock.now, 5.0)
    controller.push_angle(clock.now + 10, 8.0)
    assert controller.rom_track.initial == 5.0
    assert controller.live_rom == 8.0


def test_final_rom_tracked_in_finalize(controller, clock):
    _to_strength_setup(controller)
    controller.start_capture()
    _run_countdown(controller, clock)
    controller.advance()
    controller.push_angle(clock.now, 30.0)
    controller.push_angle(clock.now + 5, 12.0)
    assert controller.rom_track.final == 12.0
    assert controller.rom_track.max is None


def test_empty_session_uses_degraded_values(controller, clock, store):
    _to_strength_setup(controller)
    controller.start_capture()
    _run_countdown(controller, clock)
    controller.advance()
    result = controller.end_session()
    assert result.rom == 90.0
    assert result.strength.max == 0
    assert result.strength.avg == 0


def test_live_rom_used_when_no_max_tracked(controller, clock):
    controller.push_angle(clock.now, 14.0)
    _to_strength_setup(controller)
    controller.start_capture()
    _run_countdown(controller, clock)
    controller.advance()
    assert controller.end_session().rom == 14.0


def test_advance_ignored_during_strength_setup(controller, clock):
    _to_strength_setup(controller)
    controller.advance()
    assert controller.step == SessionStep.STRENGTH_SETUP
    controller.start_capture()
    controller.advance()
    assert controller.step == SessionStep.STRENGTH_SETUP
    assert controller.capture_in_progress


def test_invalid_triggers_are_noops(controller, store):
    controller.start_capture()
    assert not controller.capture_in_progress
    assert controller.end_session() is None
    assert controller.step == SessionStep.PREPARATION
    assert store.results == []

    ignored = controller.session_logger.entries_for(LogCategory.TRIGGER)
    assert len(ignored) == 2


def test_out_of_window_samples_excluded(controller, clock):
    _to_strength_setup(controller)
    controller.start_capture()
    start = clock.now
    controller.push_force(start - 1, 99.0)
    controller.push_force(start + 3001, 99.0)
    controller.push_force(start + 10, 7.0)
    assert [s.value for s in controller.capture.window.buffer] == [7.0]


def test_duplicate_timestamps_keep_first(controller, clock):
    _to_strength_setup(controller)
    controller.start_capture()
    start = clock.now
    controller.push_force(start + 100, 5.0)
    controller.push_force(start + 100, 9.0)
    buffer = controller.capture.window.buffer
    assert len(buffer) == 1
    assert buffer[0].value == 5.0


def test_second_start_capture_discards_first_window(controller, clock):
    _to_strength_setup(controller)
    controller.start_capture()
    first_start = clock.now
    controller.push_force(first_start + 100, 50.0)

    clock.advance(500)
    controller.start_capture()
    second_start = clock.now
    controller.push_force(second_start + 100, 20.0)
    controller.push_force(second_start + 200, 30.0)
    _run_countdown(controller, clock)
    controller.advance()
    result = controller.end_session()

    assert [s.sample.value for s in result.samples] == [20.0, 30.0]
    assert result.strength.max == 30.0
    assert result.strength.avg == 25.0


def test_countdown_transitions_exactly_once(controller, clock):
    transitions = []
    notifications = []
    controller.set_on_step_change(lambda old, new: transitions.append((old, new)))
    controller.set_on_notification(notifications.append)

    _to_strength_setup(controller)
    controller.start_capture()
    for _ in range(6):
        clock.advance(1000)
        controller.tick()

    automatic = [t for t in transitions if t == (SessionStep.STRENGTH_SETUP, SessionStep.COMPLETE_ROM)]
    assert len(automatic) == 1
    assert [n.title for n in notifications].count("Strength Test Complete") == 1
    assert controller.step == SessionStep.COMPLETE_ROM


def test_force_after_expiry_not_buffered(controller, clock):
    _to_strength_setup(controller)
    controller.start_capture()
    start = clock.now
    _run_countdown(controller, clock)
    controller.push_force(start + 500, 40.0)
    assert controller.capture.window.buffer == []


def test_late_countdown_window_end_is_expiry_time(controller, clock):
    _to_strength_setup(controller)
    controller.start_capture()
    start = clock.now
    _run_countdown(controller, clock, step_ms=1100)
    assert controller.capture.window.end_time == start + 3300


def test_strict_window_clamps_end(clock, store):
    ctrl = MeasurementSessionController(
        results_store=store, clock=clock,
        config=MeasurementConfig(strict_capture_window=True),
    )
    ctrl.start()
    _to_strength_setup(ctrl)
    ctrl.start_capture()
    start = clock.now
    _run_countdown(ctrl, clock, step_ms=1100)
    assert ctrl.capture.window.end_time == start + 3000


def test_restart_cancels_capture_and_clears_state(controller, clock):
    resets = []
    controller.set_on_feed_reset(lambda: resets.append(True))
    controller.push_angle(clock.now, 5.0)
    _to_strength_setup(controller)
    controller.push_angle(clock.now, 70.0)
    controller.start_capture()
    controller.push_force(clock.now + 10, 33.0)

    controller.start()

    assert controller.step == SessionStep.PREPARATION
    assert not controller.capture_in_progress
    assert controller.capture.window.buffer == []
    assert controller.rom_track.initial is None
    assert controller.rom_track.max is None
    assert controller.live_rom is None
    assert resets == [True]

    clock.advance(1000)
    controller.tick()
    assert controller.step == SessionStep.PREPARATION


def test_end_session_resets_and_closes(controller, clock, store):
    _to_strength_setup(controller)
    controller.start_capture()
    _run_countdown(controller, clock)
    controller.advance()
    result = controller.end_session()

    assert not controller.session_open
    assert controller.step == SessionStep.PREPARATION
    assert controller.last_result is result

    controller.advance()
    assert controller.step == SessionStep.PREPARATION
    assert controller.end_session() is None
    assert len(store.results) == 1


def test_store_failure_propagates_and_allows_retry(clock):
    class FlakyStore:
        def __init__(self):
            self.fail = True
            self.results = []

        def save(self, result):
            if self.fail:
                raise RuntimeError("store unavailable")
            self.results.append(result)

    flaky = FlakyStore()
    ctrl = MeasurementSessionController(results_store=flaky, clock=clock)
    ctrl.start()
    _to_strength_setup(ctrl)
    ctrl.start_capture()
    _run_countdown(ctrl, clock)
    ctrl.advance()

    with pytest.raises(RuntimeError):
        ctrl.end_session()
    assert ctrl.step == SessionStep.FINALIZE
    assert ctrl.session_open

    flaky.fail = False
    assert ctrl.end_session() is not None
    assert len(flaky.results) == 1


def test_unknown_event_raises(controller):
    with pytest.raises(TypeError):
        controller.handle(object())


def test_notifications_follow_session(controller, clock):
    notifications = []
    controller.set_on_notification(notifications.append)
    _to_strength_setup(controller)
    controller.start_capture()
    _run_countdown(controller, clock)
    controller.advance()
    controller.end_session()

    titles = [n.title for n in notifications]
    assert titles == [
        "Step 2", "Step 3", "Strength Test Started!",
        "Strength Test Complete", "Final Step", "Test Ended!",
    ]
    assert notifications[-1].severity == Severity.SUCCESS
    assert notifications[-1].message == "Test Ended! ROM: 90°, Avg Strength: 0 lbs. Results saved."


def test_baseline_wording(clock, store):
    notifications = []
    ctrl = MeasurementSessionController(baseline=True, results_store=store, clock=clock)
    ctrl.set_on_notification(notifications.append)
    ctrl.start()

    hints = ctrl.hints
    assert hints.page_title == "Set Baseline Measurement"
    assert hints.end_button_text == "Save Baseline"
    assert hints.instruction.title == "Step 1: Preparation (Baseline)"

    ctrl.push_angle(clock.now, 10.0)
    ctrl.advance()
    ctrl.push_angle(clock.now, 120.0)
    ctrl.advance()
    ctrl.start_capture()
    ctrl.push_force(clock.now + 5, 12.5)
    _run_countdown(ctrl, clock)
    ctrl.advance()
    assert ctrl.hints.instruction.title == "Step 5: Finalize Baseline"
    result = ctrl.end_session()

    assert result.baseline is True
    assert notifications[-1].title == "Baseline Saved!"
    assert notifications[-1].message == "Baseline ROM: 120°, Avg Force: 12.5 lbs. Saved."


def test_hints_during_capture(controller, clock):
    _to_strength_setup(controller)
    assert controller.hints.capture_enabled

    controller.start_capture()
    controller.push_force(clock.now + 10, 4.0)
    controller.push_force(clock.now - 10, 3.0)
    clock.advance(1000)
    controller.tick()

    hints = controller.hints
    assert hints.capture_in_progress
    assert not hints.capture_enabled
    assert hints.countdown == 2
    assert hints.chart_label == "Live Strength Test (lbs)"
    assert [(p.sample.value, p.relevant) for p in hints.live_force_points] == [(4.0, True), (3.0, False)]

    clock.advance(2000)
    controller.tick()
    controller.tick()
    hints = controller.hints
    assert not hints.capture_in_progress
    assert hints.countdown == 0
    assert hints.live_force_points == []
    assert hints.chart_label == "Measurement Data"


def test_early_expiry_excludes_late_samples_from_strength(controller, clock):
    _to_strength_setup(controller)
    controller.start_capture()
    start = clock.now
    controller.push_force(start + 100, 10.0)
    controller.push_force(start + 2900, 50.0)
    _run_countdown(controller, clock, step_ms=900)
    assert controller.capture.window.end_time == start + 2700
    controller.advance()
    result = controller.end_session()

    assert [(s.sample.value, s.relevant) for s in result.samples] == [(10.0, True), (50.0, False)]
    assert result.strength.max == 10.0
    assert result.strength.avg == 10.0


def test_tick_for_replaced_capture_is_dropped(controller, clock):
    _to_strength_setup(controller)
    controller.start_capture()
    stale = controller.capture.starts
    controller.start_capture()
    current = controller.capture.starts

    for _ in range(3):
        clock.advance(1000)
        controller.tick(generation=stale)
    assert controller.capture_in_progress
    assert controller.capture.remaining == 3

    controller.tick(generation=current)
    assert controller.capture.remaining == 2


def test_split_end_session_keeps_state_until_finished(controller, clock, store):
    _to_strength_setup(controller)
    controller.start_capture()
    _run_countdown(controller, clock)
    controller.advance()

    result = controller.prepare_result()
    assert result is not None
    assert controller.step == SessionStep.FINALIZE
    assert controller.session_open

    controller.finish_session(result)
    assert not controller.session_open
    assert controller.last_result is result
    assert controller.prepare_result() is None
