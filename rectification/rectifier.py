import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from common.errors import RectificationUnavailable
from common.frame import Frame
from document_detection.corners import order_corners
from document_detection.detector import DocumentDetector
from .mapping import NormalizedQuadrilateral
from .utils import four_point_transform, encode_jpeg

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Auto-detection did not find clean document borders; the photo was saved as is."


@dataclass
class CaptureResult:
    """
    Output of one capture action. Owned by the caller until it is handed to
    the upload collaborator.
    """
    image: np.ndarray
    rectified: bool
    corners: Optional[np.ndarray] = None
    notice: Optional[str] = None
    filename: str = field(default_factory=lambda: f"document_{uuid.uuid4().hex}.jpg")

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    def to_jpeg(self, quality: int = 90) -> bytes:
        return encode_jpeg(self.image, quality)


class PerspectiveRectifier:
    """
    Turns a capture frame into a flat, cropped document image.

    Order of attempts:
    1. the stored normalized quadrilateral, mapped onto the capture frame
    2. a fresh detection on the capture frame itself (when enabled)
    3. an unrectified copy of the whole frame, with a notice
    """

    def __init__(
        self,
        detector: Optional[DocumentDetector] = None,
        analysis_width: int = 480,
        redetect: bool = True
    ):
        """
        Initialize the rectifier.

        Args:
            detector: Detector used for re-detection on the capture frame
            analysis_width: Width the capture frame is downscaled to for re-detection
            redetect: Whether to re-detect when the stored quadrilateral is unusable
        """
        self.detector = detector or DocumentDetector()
        self.analysis_width = analysis_width
        self.redetect = redetect

    def rectify(self, image: np.ndarray, corners: np.ndarray) -> np.ndarray:
        """
        Warp the document described by corners into an axis-aligned image.

        Args:
            image: Full-resolution image
            corners: 4 corners in the image's pixel space, any order

        Returns:
            Rectified image

        Raises:
            RectificationUnavailable: if the corners are degenerate
        """
        return four_point_transform(image, order_corners(corners))

    def process(self, frame: Frame, quad: Optional[NormalizedQuadrilateral]) -> CaptureResult:
        """
        Produce the capture result for a frame.

        Never raises on a bad or missing quadrilateral; falls back instead.

        Args:
            frame: Capture frame (native resolution)
            quad: Frozen snapshot of the last known detection, or None

        Returns:
            CaptureResult
        """
        if quad is not None:
            corners = quad.to_pixels(frame.width, frame.height)
            try:
                return self._rectified(frame, corners)
            except RectificationUnavailable as e:
                logger.warning("Stored quadrilateral unusable: %s", e)
        else:
            logger.debug("No stored quadrilateral for capture")

        if self.redetect:
            corners = self._redetect(frame)
            if corners is not None:
                try:
                    return self._rectified(frame, corners)
                except RectificationUnavailable as e:
                    logger.warning("Re-detected quadrilateral unusable: %s", e)

        logger.warning("Falling back to the unrectified frame (%dx%d)", frame.width, frame.height)
        return CaptureResult(image=frame.image.copy(), rectified=False, notice=FALLBACK_NOTICE)

    def _rectified(self, frame: Frame, corners: np.ndarray) -> CaptureResult:
        ordered = order_corners(corners)
        warped = four_point_transform(frame.image, ordered)
        logger.info("Rectified capture to %dx%d", warped.shape[1], warped.shape[0])
        return CaptureResult(image=warped, rectified=True, corners=ordered)

    def _redetect(self, frame: Frame) -> Optional[np.ndarray]:
        """Detect on the downscaled capture frame and map back to full resolution."""
        analysis = frame.downscale(self.analysis_width)
        corners = self.detector.detect(analysis.image)
        if corners is None:
            logger.debug("Re-detection on the capture frame found nothing")
            return None

        quad = NormalizedQuadrilateral.from_pixels(corners, analysis.width, analysis.height)
        return quad.to_pixels(frame.width, frame.height)
