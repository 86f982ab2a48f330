"""
Pipeline engine for the object counter.

Runs one detection session against an ObservationSource. Ticks are paced by
a RefreshSignal, the host's "a new frame can be displayed" notification:
each signal pulls one frame and feeds it to the SessionController. Signals
that arrive while a tick is still detecting coalesce into one, so inference
never runs faster than the display and never queues up.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

import cv2

from models.counts import Annotation
from models.frame import FrameData
from observation import ObservationSource
from session.controller import SessionController

from .render import draw_annotations, draw_counts


class RefreshSignal:
    """
    Host refresh notifications.

    notify() may be called any number of times per tick; wait() returns once
    per burst. close() wakes the waiter and makes wait() return False.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self) -> None:
        self._event.set()

    def close(self) -> None:
        self._closed = True
        self._event.set()

    async def wait(self) -> bool:
        await self._event.wait()
        self._event.clear()
        return not self._closed


async def drive_refresh(signal: RefreshSignal, interval: float) -> None:
    """Stand-in for a display refresh loop when running headless."""
    while not signal.closed:
        signal.notify()
        await asyncio.sleep(interval)


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        refresh_interval: Seconds between refresh signals when the engine
            drives its own refresh loop.
        max_consecutive_failures: Max frame read failures before stopping.
        max_duration: Stop (and save) after this many seconds. None = run
            until the source ends or the user quits.
        stats_log_interval: Seconds between status log messages.
        display: Show an OpenCV preview window ('q' stops the session).
        display_size: (width, height) of the preview. None = frame size.
    """
    refresh_interval: float = 1 / 30
    max_consecutive_failures: int = 10
    max_duration: Optional[float] = None
    stats_log_interval: float = 60.0
    display: bool = False
    display_size: Optional[Tuple[int, int]] = None


@dataclass
class PipelineStats:
    """Runtime statistics for one run."""
    frame_count: int = 0
    applied_count: int = 0
    consecutive_failures: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class PipelineEngine:
    """
    Drives a SessionController from an ObservationSource.

    Example:
        engine = PipelineEngine(source, controller, PipelineConfig(max_duration=30))
        record_id = asyncio.run(engine.run())
    """

    def __init__(
        self,
        source: ObservationSource,
        controller: SessionController,
        config: Optional[PipelineConfig] = None,
    ):
        self.source = source
        self.controller = controller
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()
        self._refresh: Optional[RefreshSignal] = None
        self._stop_requested = False
        self._next_source: Optional[ObservationSource] = None

    def request_stop(self) -> None:
        """Ask the running session to stop and be saved after the current tick."""
        self._stop_requested = True
        if self._refresh is not None:
            self._refresh.notify()

    def switch_source(self, source: ObservationSource) -> None:
        """
        Replace the input source.

        The running session is discarded without saving; call run() again to
        start a session on the new source.
        """
        self.controller.switch_source()
        self._next_source = source
        if self._refresh is not None:
            self._refresh.notify()

    async def run(self, refresh: Optional[RefreshSignal] = None) -> Optional[int]:
        """
        Run one session until the source ends, the user quits, max_duration
        passes or the session is stopped/switched elsewhere.

        Args:
            refresh: Host refresh signal. When omitted the engine drives its
                own at refresh_interval.

        Returns:
            The saved SessionRecord id, or None if nothing was saved.

        Raises:
            RuntimeError: If the source cannot be opened.
            DetectorUnavailableError: If no detection model can be loaded.
        """
        self.stats = PipelineStats()
        self._stop_requested = False
        self._refresh = refresh or RefreshSignal()
        driver: Optional[asyncio.Task] = None
        record_id: Optional[int] = None

        self.source.open()
        try:
            epoch = await self.controller.start()
            if refresh is None:
                driver = asyncio.create_task(drive_refresh(self._refresh, self.config.refresh_interval))
            logging.info(f"Pipeline started: source={self.source.source_id}")

            while self._is_current(epoch):
                if not await self._refresh.wait():
                    break
                if self._should_finish():
                    break

                frame_data = await asyncio.to_thread(self.source.read)
                if frame_data is None:
                    if self.source.exhausted:
                        break
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    continue

                self.stats.consecutive_failures = 0
                self.stats.frame_count += 1
                result = await self.controller.on_frame(frame_data, display_size=self.config.display_size)
                if result is not None:
                    self.stats.applied_count += 1

                if self.config.display:
                    if not self._handle_display(frame_data):
                        break  # User pressed 'q'

                self._handle_periodic_tasks()

            if self._is_current(epoch):
                record_id = await self.controller.stop()

        finally:
            self._refresh.close()
            if driver is not None:
                driver.cancel()
                try:
                    await driver
                except asyncio.CancelledError:
                    pass
            self._cleanup()

        return record_id

    def _is_current(self, epoch: int) -> bool:
        return self.controller.running and self.controller.epoch == epoch

    def _should_finish(self) -> bool:
        if self._stop_requested:
            return True
        if self.config.max_duration is not None:
            elapsed = self.controller.elapsed() or 0.0
            return elapsed >= self.config.max_duration
        return False

    def _handle_display(self, frame_data: FrameData) -> bool:
        """
        Show the frame with the live annotations.

        Returns False if user pressed 'q' to quit.
        """
        frame = frame_data.frame
        if self.config.display_size:
            frame = cv2.resize(frame, tuple(self.config.display_size))
        else:
            frame = frame.copy()
        annotations: list[Annotation] = self.controller.annotations
        draw_annotations(frame, annotations)
        draw_counts(frame, self.controller.live_counts)
        cv2.imshow("Object Counter", frame)
        key = cv2.waitKey(1) & 0xFF
        return key != ord('q')

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, "
                f"applied={self.stats.applied_count}, counts={self.controller.live_counts}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        if self.config.display:
            cv2.destroyAllWindows()

        if self._next_source is not None:
            self.source = self._next_source
            self._next_source = None

        logging.info(
            f"Pipeline stopped: frames={self.stats.frame_count}, applied={self.stats.applied_count}"
        )
