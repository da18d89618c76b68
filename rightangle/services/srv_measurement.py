"""
Measurement Session Service for the Right Angle backend.

Owns the live measurement sessions. Every session is driven by one
MeasurementSessionActor: an asyncio task that drains a queue of events
(samples, user triggers, countdown ticks) and feeds them one at a time
into the session controller. A companion ticker task enqueues a countdown
tick every second while a strength capture is running.

Author: Right Angle Team
Version: 1.0.0
"""

import asyncio
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from rightangle.core.config import settings
from rightangle.helpers.exception_handler import CustomException
from rightangle.measurement.core import (
    AngleSampleReceived, CountdownTick, ForceSampleReceived, MeasurementConfig,
    MeasurementSessionController, Notification, PresentationHints, ResultsStore,
    Sample, SessionRestartRequested, SessionResult, Trigger, UserTriggered,
)
from rightangle.measurement.utils import create_session_logger

logger = logging.getLogger(__name__)

_STOP = object()


def _is_end_session(event) -> bool:
    return isinstance(event, UserTriggered) and event.trigger == Trigger.END_SESSION


@dataclass
class SessionReply:
    """
    Outcome of one processed submission.

    Attributes:
        session_id: Session the reply belongs to
        hints: Presentation hints after processing
        notifications: Notifications raised since the previous reply
        result: SessionResult when the submission ended the session
    """
    session_id: str
    hints: PresentationHints
    notifications: List[Notification] = field(default_factory=list)
    result: Optional[SessionResult] = None


class LiveHistory:
    """Bounded recent history of the angle and force feeds."""

    def __init__(self, maxlen: int = 500):
        self.angle: Deque[Sample] = deque(maxlen=maxlen)
        self.force: Deque[Sample] = deque(maxlen=maxlen)

    def record(self, event) -> None:
        if isinstance(event, AngleSampleReceived):
            self.angle.append(event.sample)
        elif isinstance(event, ForceSampleReceived):
            self.force.append(event.sample)

    def clear(self) -> None:
        self.angle.clear()
        self.force.clear()


class MeasurementSessionActor:
    """
    Single writer for one session controller.

    Usage:
        actor = MeasurementSessionActor(controller, tick_interval=1.0)
        actor.start()
        reply = await actor.submit(UserTriggered(Trigger.ADVANCE))
        ...
        await actor.stop()
    """

    def __init__(
        self,
        controller: MeasurementSessionController,
        tick_interval: Optional[float] = 1.0,
        history_size: int = 500,
        results_store: Optional[ResultsStore] = None,
    ):
        """
        Args:
            controller: Session controller owned by this actor
            tick_interval: Seconds between countdown ticks, None to leave
                ticking to the caller
            history_size: Samples kept per feed for live display
            results_store: Receives finished results, called in a worker
                thread so a slow store never stalls other sessions
        """
        self.controller = controller
        self._results_store = results_store
        self.session_id = controller.session_id
        self.history = LiveHistory(history_size)
        self._tick_interval = tick_interval
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._ticker: Optional[asyncio.Task] = None
        self._ticker_generation: Optional[int] = None
        self._notifications: List[Notification] = []

        controller.set_on_notification(self._on_notification)
        controller.set_on_feed_reset(self.history.clear)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def ticking(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def start(self) -> None:
        """Start the event loop task. Must be called from a running loop."""
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._run(), name=f"measurement-{self.session_id}")

    async def submit(self, *events) -> SessionReply:
        """
        Enqueue events and wait until they have been processed.

        The events are handled back to back, in order, with nothing
        interleaved between them.
        """
        if not self.running:
            raise CustomException(http_code=404, code='404', message=f'Session {self.session_id} is closed')
        future = asyncio.get_running_loop().create_future()
        await self._queue.put((list(events), future))
        return await future

    async def stop(self) -> None:
        """Cancel the ticker and finish the event loop."""
        self._cancel_ticker()
        if not self.running:
            return
        future = asyncio.get_running_loop().create_future()
        await self._queue.put((_STOP, future))
        await future
        await self._task

    async def _run(self) -> None:
        while True:
            events, future = await self._queue.get()
            if events is _STOP:
                self._cancel_ticker()
                future.set_result(None)
                return

            try:
                result = None
                for event in events:
                    self.history.record(event)
                    if _is_end_session(event):
                        outcome = await self._end_session()
                    else:
                        outcome = self.controller.handle(event)
                    if outcome is not None:
                        result = outcome
                self._sync_ticker()
            except Exception as e:
                logger.error(f"[ACTOR] {self.session_id}: event processing failed: {e}", exc_info=True)
                self._sync_ticker()
                if future is not None and not future.done():
                    future.set_exception(e)
                continue

            if future is not None and not future.done():
                notifications, self._notifications = self._notifications, []
                future.set_result(SessionReply(
                    session_id=self.session_id,
                    hints=self.controller.hints,
                    notifications=notifications,
                    result=result,
                ))

    def _sync_ticker(self) -> None:
        """Keep exactly one ticker alive per open capture window."""
        capture = self.controller.capture
        if not capture.active:
            self._cancel_ticker()
            return
        if self._tick_interval is None:
            return
        if self.ticking and self._ticker_generation == capture.starts:
            return

        # New window (first start or restart): countdown starts over
        self._cancel_ticker()
        self._ticker_generation = capture.starts
        self._ticker = asyncio.create_task(self._tick_loop(capture.starts))

    def _cancel_ticker(self) -> None:
        if self._ticker is not None and not self._ticker.done():
            self._ticker.cancel()
        self._ticker = None
        self._ticker_generation = None

    async def _tick_loop(self, generation: int) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            await self._queue.put(([CountdownTick(generation)], None))

    async def _end_session(self) -> Optional[SessionResult]:
        """
        EndSession with blocking I/O moved off the event loop.

        The actor awaits the store before taking its next event, so this
        session stays serialized while other sessions keep running. A store
        error leaves the controller in FINALIZE.
        """
        result = self.controller.prepare_result()
        if result is None:
            return None

        loop = asyncio.get_running_loop()
        if self._results_store is not None:
            await loop.run_in_executor(None, self._results_store.save, result)
        self.controller.finish_session(result)

        # The result is already stored; a journal write failure must not undo that
        try:
            log_file = await loop.run_in_executor(None, self.controller.session_logger.save_session_log)
        except OSError as e:
            logger.error(f"[ACTOR] {self.session_id}: session journal not written: {e}", exc_info=True)
            return result
        if log_file:
            logger.info(f"[ACTOR] {self.session_id}: session journal written to {log_file}")
        return result

    def _on_notification(self, notification: Notification) -> None:
        logger.info(f"[ACTOR] {self.session_id}: {notification.title} - {notification.message}")
        self._notifications.append(notification)


class MeasurementService:
    """
    Registry of live measurement sessions.

    One actor per session id. Finished sessions are handed to the results
    store by their controller and dropped from the registry.
    """

    def __init__(
        self,
        results_store: Optional[ResultsStore] = None,
        config: Optional[MeasurementConfig] = None,
        tick_interval: Optional[float] = None,
        clock: Optional[Callable[[], int]] = None,
        history_size: Optional[int] = None,
        log_dir: Optional[str] = None,
        use_ticker: bool = True,
    ):
        self._results_store = results_store
        self._config = config or MeasurementConfig(
            capture_duration_ms=settings.CAPTURE_DURATION_MS,
            countdown_seconds=settings.COUNTDOWN_SECONDS,
            rom_fallback_deg=settings.ROM_FALLBACK_DEG,
            strict_capture_window=settings.STRICT_CAPTURE_WINDOW,
        )
        if not use_ticker:
            self._tick_interval = None
        else:
            self._tick_interval = tick_interval if tick_interval is not None else settings.COUNTDOWN_TICK_SECONDS
        self._clock = clock
        self._history_size = history_size or settings.LIVE_HISTORY_SIZE
        self._log_dir = log_dir if log_dir is not None else settings.MEASUREMENT_LOG_DIR
        self._actors: Dict[str, MeasurementSessionActor] = {}

        logger.info(
            f"[SERVICE] MeasurementService initialized: tick_interval={self._tick_interval}, "
            f"capture_duration_ms={self._config.capture_duration_ms}"
        )

    @property
    def active_session_ids(self) -> List[str]:
        return list(self._actors.keys())

    async def start_session(self, baseline: bool = False) -> SessionReply:
        """Open a new session in PREPARATION."""
        session_id = str(uuid.uuid4())
        controller = MeasurementSessionController(
            baseline=baseline,
            config=self._config,
            clock=self._clock,
            session_id=session_id,
            session_logger=create_session_logger(session_id, self._log_dir),
        )
        actor = MeasurementSessionActor(
            controller, self._tick_interval, self._history_size, results_store=self._results_store,
        )
        actor.start()
        self._actors[session_id] = actor

        logger.info(f"[SERVICE] Started {'baseline' if baseline else 'regular'} session {session_id}")
        return await actor.submit(SessionRestartRequested())

    def _get_actor(self, session_id: str) -> MeasurementSessionActor:
        actor = self._actors.get(session_id)
        if actor is None:
            raise CustomException(http_code=404, code='404', message=f'Session {session_id} not found')
        return actor

    async def get_state(self, session_id: str) -> SessionReply:
        return await self._get_actor(session_id).submit()

    async def push_angle_samples(self, session_id: str, samples: List[Sample]) -> SessionReply:
        return await self._get_actor(session_id).submit(*[AngleSampleReceived(s) for s in samples])

    async def push_force_samples(self, session_id: str, samples: List[Sample]) -> SessionReply:
        return await self._get_actor(session_id).submit(*[ForceSampleReceived(s) for s in samples])

    async def advance(self, session_id: str) -> SessionReply:
        return await self._get_actor(session_id).submit(UserTriggered(Trigger.ADVANCE))

    async def start_capture(self, session_id: str) -> SessionReply:
        return await self._get_actor(session_id).submit(UserTriggered(Trigger.START_CAPTURE))

    async def tick(self, session_id: str) -> SessionReply:
        """Deliver one countdown tick from an external scheduler."""
        return await self._get_actor(session_id).submit(CountdownTick())

    async def restart(self, session_id: str) -> SessionReply:
        return await self._get_actor(session_id).submit(SessionRestartRequested())

    async def end_session(self, session_id: str) -> SessionReply:
        """
        Send EndSession. When it produces a result the session is closed.
        """
        actor = self._get_actor(session_id)
        reply = await actor.submit(UserTriggered(Trigger.END_SESSION))
        if reply.result is not None:
            await self.close_session(session_id)
        return reply

    def live_history(self, session_id: str) -> LiveHistory:
        return self._get_actor(session_id).history

    async def close_session(self, session_id: str) -> None:
        actor = self._actors.pop(session_id, None)
        if actor is None:
            raise CustomException(http_code=404, code='404', message=f'Session {session_id} not found')
        await actor.stop()
        logger.info(f"[SERVICE] Closed session {session_id}")

    async def shutdown(self) -> None:
        for session_id in list(self._actors.keys()):
            await self.close_session(session_id)


_measurement_service: Optional[MeasurementService] = None


def get_measurement_service() -> MeasurementService:
    """Process-wide service instance backed by the database results store."""
    global _measurement_service
    if _measurement_service is None:
        from rightangle.services.srv_results import DatabaseResultsStore
        _measurement_service = MeasurementService(results_store=DatabaseResultsStore())
    return _measurement_service
