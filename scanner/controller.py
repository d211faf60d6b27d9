"""
Auto-capture controller: drives detection each analysis cycle and decides
when to capture.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

import numpy as np

from common.errors import CameraError, FrameUnavailable, ScannerClosed
from common.frame import Frame
from document_detection.detector import DocumentDetector
from rectification.mapping import NormalizedQuadrilateral
from rectification.rectifier import PerspectiveRectifier, CaptureResult
from .camera import CameraConstraints, FrameSource
from .config import ScannerConfig
from .scheduler import CycleScheduler, ANALYSIS_TAG
from .session import ScanSession
from .stability import StabilityTracker

logger = logging.getLogger(__name__)


class ScannerState(Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    LOCKED = "locked"
    STABLE = "stable"
    CAPTURED = "captured"
    CLOSED = "closed"


ANALYZING_STATES = (ScannerState.SEARCHING, ScannerState.LOCKED, ScannerState.STABLE)


@dataclass(frozen=True)
class OverlayUpdate:
    """
    What the rendering layer gets once per analysis cycle.

    polygon: 4 points in display coordinates, or None when nothing is tracked
    """
    polygon: Optional[np.ndarray]
    stable: bool


class AutoCaptureController:
    """
    State machine of one scanning session.

    Idle -> Searching -> Locked -> Stable -> Captured -> Searching, and any
    state -> Closed. Captures run synchronously on the caller's thread and
    read a frozen snapshot of the last known quadrilateral.
    """

    def __init__(
        self,
        source: FrameSource,
        config: Optional[ScannerConfig] = None,
        detector: Optional[DocumentDetector] = None,
        rectifier: Optional[PerspectiveRectifier] = None,
        scheduler: Optional[CycleScheduler] = None,
        display_size: Optional[Tuple[int, int]] = None,
        on_overlay: Optional[Callable[[OverlayUpdate], None]] = None,
        on_capture: Optional[Callable[[bytes, str], None]] = None,
        on_state_change: Optional[Callable[[ScannerState], None]] = None,
        on_error: Optional[Callable[[CameraError], None]] = None
    ):
        """
        Args:
            source: Camera collaborator supplying capture frames
            config: Session tunables
            detector: Document detector used on analysis frames
            rectifier: Rectifier used on capture
            scheduler: Scheduler the analysis task is registered on
            display_size: (width, height) of the overlay surface; defaults to the capture frame size
            on_overlay: Receives one OverlayUpdate per analysis cycle
            on_capture: Upload collaborator, receives (jpeg_bytes, filename);
                errors it raises are logged and do not stop the session
            on_state_change: Receives each new state
            on_error: Receives device errors raised by start()
        """
        self.source = source
        self.config = config or ScannerConfig()
        self.detector = detector or DocumentDetector()
        self.rectifier = rectifier or PerspectiveRectifier(
            detector=self.detector,
            analysis_width=self.config.analysis_width,
            redetect=self.config.redetect_on_capture
        )
        self.scheduler = scheduler or CycleScheduler()
        self.display_size = display_size
        self.on_overlay = on_overlay
        self.on_capture = on_capture
        self.on_state_change = on_state_change
        self.on_error = on_error

        self.session = ScanSession(StabilityTracker(
            cap=self.config.stability_cap,
            stable_threshold=self.config.stable_threshold
        ))
        self.auto_capture = self.config.auto_capture

        self._state = ScannerState.IDLE
        self._latest_frame: Optional[Frame] = None
        self._latest_overlay = OverlayUpdate(polygon=None, stable=False)
        self._last_capture: Optional[CaptureResult] = None

    @property
    def state(self) -> ScannerState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is ScannerState.CLOSED

    @property
    def latest_frame(self) -> Optional[Frame]:
        return self._latest_frame

    @property
    def latest_overlay(self) -> OverlayUpdate:
        return self._latest_overlay

    @property
    def last_capture(self) -> Optional[CaptureResult]:
        return self._last_capture

    def start(self):
        """
        Open the camera and schedule the analysis cycle.

        Raises:
            CameraError: device errors are fatal; the session is closed first
            ScannerClosed: if the session was already closed
        """
        if self._state is ScannerState.CLOSED:
            raise ScannerClosed("Cannot start a closed session")
        if self._state is not ScannerState.IDLE:
            return

        constraints = CameraConstraints(
            device_index=self.config.camera_index,
            preferred_width=self.config.preferred_width,
            preferred_height=self.config.preferred_height
        )

        try:
            self.source.start(constraints)
        except CameraError as e:
            logger.error("Camera start failed (%s): %s", e.category.value, e)
            self.close()
            if self.on_error:
                self.on_error(e)
            raise

        self.session.reset()
        self.scheduler.every(self.config.analysis_period, self.analyze, tag=ANALYSIS_TAG)
        logger.info("Scanning session started")
        self._set_state(ScannerState.SEARCHING)

    def analyze(self) -> Optional[OverlayUpdate]:
        """
        One analysis cycle: detect, update stability, publish the overlay
        and auto-capture when stable.

        A cycle without a frame is skipped and leaves the session untouched.

        Returns:
            The published overlay, or None if the cycle was skipped
        """
        if self._state not in ANALYZING_STATES:
            return None

        frame = self.source.read()
        if frame is None:
            logger.debug("No frame ready, skipping analysis cycle")
            return None
        self._latest_frame = frame

        analysis = frame.downscale(self.config.analysis_width)
        corners = self.detector.detect(analysis.image)

        if corners is not None:
            quad = NormalizedQuadrilateral.from_pixels(corners, analysis.width, analysis.height)
            self.session.record_hit(quad)
        else:
            self.session.record_miss()

        logger.debug(
            "Analysis cycle: %s, counter=%d",
            "hit" if corners is not None else "miss",
            self.session.tracker.counter
        )

        self._update_tracking_state()
        overlay = self._publish_overlay(frame)

        if self.auto_capture and self._state is ScannerState.STABLE:
            logger.info("Detection stable, auto-capturing")
            self.capture()

        return overlay

    def capture(self) -> CaptureResult:
        """
        Capture and rectify the current frame.

        Allowed from any state except Closed. Always returns a result:
        an unusable quadrilateral falls back to the raw frame.

        Raises:
            ScannerClosed: if the session is closed
            FrameUnavailable: if no frame could be obtained at all
        """
        if self._state is ScannerState.CLOSED:
            raise ScannerClosed("Cannot capture on a closed session")

        quad = self.session.snapshot()

        frame = self.source.read() or self._latest_frame
        if frame is None:
            raise FrameUnavailable("No frame available for capture")

        result = self.rectifier.process(frame, quad)
        self._last_capture = result
        self._set_state(ScannerState.CAPTURED)

        if self.on_capture:
            try:
                self.on_capture(result.to_jpeg(self.config.jpeg_quality), result.filename)
            except Exception:
                # the capture result stays available as last_capture
                logger.exception("Upload of %s failed", result.filename)
            if self._state is ScannerState.CLOSED:
                # closed from within the upload callback
                return result

        self.session.reset()
        self._latest_overlay = OverlayUpdate(polygon=None, stable=False)
        # The session restarts from scratch; an unopened session stays idle
        if self.source.is_running:
            self._set_state(ScannerState.SEARCHING)
        else:
            self._set_state(ScannerState.IDLE)

        return result

    def reset(self):
        """Drop the current lock and start searching again."""
        if self._state is ScannerState.CLOSED:
            raise ScannerClosed("Cannot reset a closed session")
        self.session.reset()
        if self._state in ANALYZING_STATES:
            self._set_state(ScannerState.SEARCHING)

    def close(self):
        """
        Stop the analysis cycle and release the camera. Safe to call twice.
        """
        if self._state is ScannerState.CLOSED:
            return

        self.scheduler.cancel_all()
        self.source.stop()
        self.session.reset()
        self._latest_frame = None
        self._latest_overlay = OverlayUpdate(polygon=None, stable=False)
        logger.info("Scanning session closed")
        self._set_state(ScannerState.CLOSED)

    def _update_tracking_state(self):
        if self.session.is_stable:
            self._set_state(ScannerState.STABLE)
        elif self.session.tracker.has_lock:
            self._set_state(ScannerState.LOCKED)
        else:
            self._set_state(ScannerState.SEARCHING)

    def _publish_overlay(self, frame: Frame) -> OverlayUpdate:
        quad = self.session.overlay_quad
        polygon = None
        if quad is not None:
            width, height = self.display_size or (frame.width, frame.height)
            polygon = quad.to_pixels(width, height)

        overlay = OverlayUpdate(polygon=polygon, stable=self.session.is_stable)
        self._latest_overlay = overlay
        if self.on_overlay:
            self.on_overlay(overlay)
        return overlay

    def _set_state(self, state: ScannerState):
        if state is self._state:
            return
        logger.debug("State %s -> %s", self._state.value, state.value)
        self._state = state
        if self.on_state_change:
            self.on_state_change(state)
