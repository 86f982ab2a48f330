"""
Session controller: the Idle/Running state machine for a detection session.

The controller exclusively owns the live FrameCounts, the running state and
the start time. The display layer only reads them (snapshot()) or receives
them through listeners.

Scheduling is single-threaded asyncio. A tick awaits the detector, so
several ticks (or a stop) can interleave around that suspension point. Two
guards decide whether a late result is applied:

- epoch: bumped on every start. A result is only applied while the session
  is still Running with the epoch captured when the tick was issued.
- tick sequence: a result older than the newest applied one is dropped, so
  displayed counts never move backwards in time.

The result itself is applied without suspending, so no other tick can see it
half-applied.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Set, Tuple

from counting.classifier import FrameClassifier, FrameResult
from detection.adapter import DetectorAdapter
from models.counts import Annotation, FrameCounts, zero_counts
from models.frame import FrameData
from models.status import SessionState, SessionStatus
from ops.errors import CounterError
from storage.history import HistoryStore

CountsListener = Callable[[FrameCounts, List[Annotation]], None]
Size = Tuple[float, float]


class SessionController:
    """
    Lifecycle: construct, start(), on_frame() per refresh tick, stop(), dispose().

    Example:
        controller = SessionController(detector, store)
        controller.add_listener(lambda counts, annotations: render(counts, annotations))
        await controller.start()
        await controller.on_frame(frame_data)
        record_id = await controller.stop()
    """

    def __init__(
        self,
        detector: DetectorAdapter,
        store: Optional[HistoryStore] = None,
        classifier: Optional[FrameClassifier] = None,
        clock: Callable[[], float] = time.monotonic,
        display_size: Optional[Size] = None,
    ):
        self.detector = detector
        self.store = store
        self.classifier = classifier or FrameClassifier()
        self.display_size = display_size
        self._clock = clock

        self._state = SessionState.IDLE
        self._epoch = 0
        self._start_time: Optional[float] = None
        self._live_counts: FrameCounts = zero_counts()
        self._annotations: List[Annotation] = []
        self._issued_tick = 0
        self._applied_tick = 0
        self._frames_processed = 0

        self._listeners: List[CountsListener] = []
        self._reported: Set[str] = set()
        self._disposed = False

        self.last_error: Optional[str] = None
        self.last_record_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Read-side
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state == SessionState.RUNNING

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def live_counts(self) -> FrameCounts:
        return dict(self._live_counts)

    @property
    def annotations(self) -> List[Annotation]:
        return list(self._annotations)

    def elapsed(self) -> Optional[float]:
        if self._start_time is None:
            return None
        return max(0.0, self._clock() - self._start_time)

    def snapshot(self) -> SessionStatus:
        return SessionStatus(
            state=self._state,
            epoch=self._epoch,
            elapsed_seconds=self.elapsed(),
            counts=self.live_counts,
            confidence_threshold=self.classifier.confidence_threshold,
            selected_classes=list(self.classifier.sorted_selection()),
            frames_processed=self._frames_processed,
            alerts=sorted(self._reported),
        )

    def add_listener(self, listener: CountsListener) -> None:
        """Register a callback receiving (counts, annotations) whenever the display changes."""
        self._listeners.append(listener)

    def remove_listener(self, listener: CountsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def update_settings(
        self,
        confidence_threshold: Optional[float] = None,
        classes: Optional[List[str]] = None,
    ) -> None:
        """Change threshold and/or class selection; takes effect on the next tick."""
        if confidence_threshold is not None:
            self.classifier.confidence_threshold = confidence_threshold
        if classes is not None:
            self.classifier.select_classes(classes)
        logging.info(
            f"Settings updated: threshold={self.classifier.confidence_threshold}, "
            f"classes={list(self.classifier.sorted_selection())}"
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> int:
        """
        Begin a session and return its epoch.

        Starting while already Running is a no-op.

        Raises:
            DetectorUnavailableError: If no detection model can be acquired.
                The controller stays Idle.
        """
        if self._disposed:
            raise RuntimeError("SessionController has been disposed")
        if self.running:
            return self._epoch

        await self.detector.ensure_available()

        # Another start may have completed while the model was loading.
        if self.running:
            return self._epoch

        self._epoch += 1
        self._start_time = self._clock()
        self._live_counts = zero_counts()
        self._annotations = []
        self._frames_processed = 0
        self._reported.clear()
        self.last_error = None
        self._state = SessionState.RUNNING

        logging.info(f"Detection session started (epoch={self._epoch})")
        self._emit()
        return self._epoch

    async def on_frame(
        self,
        frame: FrameData,
        display_size: Optional[Size] = None,
    ) -> Optional[FrameResult]:
        """
        Process one refresh tick.

        Returns the applied FrameResult, or None when Idle, when detection
        failed for this frame, or when the result arrived stale.
        """
        if not self.running:
            return None

        epoch = self._epoch
        self._issued_tick += 1
        tick = self._issued_tick

        try:
            detections = await self.detector.detect(frame.frame)
        except CounterError as e:
            self._report("detection_failed", f"Detection error: {e}")
            return None

        if not (self.running and self._epoch == epoch):
            logging.debug(f"Discarding detection result from epoch {epoch} (now {self._epoch}, {self._state.value})")
            return None
        if tick < self._applied_tick:
            logging.debug(f"Discarding out-of-order tick {tick} (applied {self._applied_tick})")
            return None

        result = self.classifier.classify(
            detections,
            frame_size=frame.size,
            display_size=display_size or self.display_size,
        )
        self._applied_tick = tick
        self._live_counts = result.counts
        self._annotations = result.annotations
        self._frames_processed += 1
        self._emit()
        return result

    async def stop(self) -> Optional[int]:
        """
        End the session and persist it.

        The stored counts are the live counts at this moment, i.e. the last
        applied frame's counts, not a sum over the session.

        Returns:
            The new SessionRecord id, or None if the controller was already
            Idle or the history store could not save the session.
        """
        if not self.running:
            return None

        duration = self.elapsed() or 0.0
        counts = dict(self._live_counts)
        self._state = SessionState.IDLE
        self._start_time = None
        logging.info(
            f"Detection session stopped (epoch={self._epoch}, duration={duration:.1f}s, "
            f"frames={self._frames_processed}, counts={counts})"
        )

        if self.store is None:
            return None
        try:
            record_id = await self.store.insert(counts, duration)
        except CounterError as e:
            self._report("save_failed", f"Could not save session: {e}")
            return None

        self.last_record_id = record_id
        return record_id

    def switch_source(self) -> None:
        """
        Reset for a new input source without saving.

        Cancels the effect of any in-flight detection and zeroes the display.
        """
        if self.running:
            logging.info(f"Source switched; session epoch={self._epoch} discarded without saving")
        self._state = SessionState.IDLE
        self._start_time = None
        self._live_counts = zero_counts()
        self._annotations = []
        self._emit()

    def dispose(self) -> None:
        """Stop ticking without saving and detach listeners."""
        self._state = SessionState.IDLE
        self._start_time = None
        self._listeners.clear()
        self._disposed = True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _emit(self) -> None:
        counts = self.live_counts
        annotations = self.annotations
        for listener in list(self._listeners):
            try:
                listener(counts, annotations)
            except Exception as e:
                logging.warning(f"Display listener error: {e}")

    def _report(self, kind: str, message: str) -> None:
        """Log a failure; only the first occurrence of each kind per session is loud."""
        self.last_error = message
        if kind in self._reported:
            logging.debug(message)
            return
        self._reported.add(kind)
        logging.warning(message)
