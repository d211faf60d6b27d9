"""
Document detector for live analysis frames using OpenCV
"""

import logging

import cv2
import numpy as np
from typing import Optional, List, Tuple

from .corners import order_corners

logger = logging.getLogger(__name__)


class DocumentDetector:
    """
    Class for document detection in analysis frames.

    Builds a binary edge map tuned for low-contrast paper-on-surface scenes
    and picks the largest convex quadrilateral among the external contours.
    """

    def __init__(
        self,
        blur_kernel: int = 5,
        close_kernel: int = 5,
        dilate_kernel: int = 5,
        canny_low: int = 30,
        canny_high: int = 100,
        min_area_divisor: float = 20.0,
        approx_epsilon: float = 0.03,
        rough_epsilon: float = 0.05
    ):
        """
        Initialize the detector.

        Args:
            blur_kernel: Gaussian blur kernel size (odd)
            close_kernel: Structuring element size for morphological close
            dilate_kernel: Structuring element size for edge dilation
            canny_low: Lower Canny hysteresis threshold
            canny_high: Upper Canny hysteresis threshold
            min_area_divisor: Contours smaller than frame area / divisor are rejected
            approx_epsilon: Polygon approximation tolerance (ratio of perimeter)
            rough_epsilon: Looser tolerance used to coerce 5-6 vertex polygons to 4
        """
        if blur_kernel % 2 == 0:
            raise ValueError("blur_kernel must be odd")
        if canny_low >= canny_high:
            raise ValueError("canny_low must be below canny_high")
        if min_area_divisor <= 0:
            raise ValueError("min_area_divisor must be positive")

        self.blur_kernel = blur_kernel
        self.close_kernel = close_kernel
        self.dilate_kernel = dilate_kernel
        self.canny_low = canny_low
        self.canny_high = canny_high
        self.min_area_divisor = min_area_divisor
        self.approx_epsilon = approx_epsilon
        self.rough_epsilon = rough_epsilon

    def detect(self, image: np.ndarray) -> Optional[np.ndarray]:
        """
        Detect a document in the analysis frame.

        Args:
            image: Analysis frame (BGR, BGRA or grayscale)

        Returns:
            Array with 4 corners [[x1,y1], [x2,y2], [x3,y3], [x4,y4]] in
            analysis pixel space, or None if no document was found.
            Corners are ordered: top-left, top-right, bottom-right, bottom-left
        """
        if image is None or image.size == 0:
            return None

        edge_map = self.build_edge_map(image)
        contour = self.select_contour(edge_map)
        if contour is None:
            return None

        return order_corners(contour)

    def build_edge_map(self, image: np.ndarray) -> np.ndarray:
        """
        Convert an analysis frame into a binary edge map of the same size.

        grayscale -> blur -> morphological close -> Canny -> dilation.
        Always produces an output, possibly empty.
        """
        gray = self._to_gray(image)

        # Blur to remove sensor noise
        blurred = cv2.GaussianBlur(gray, (self.blur_kernel, self.blur_kernel), 0)

        # Close to bridge broken edge segments
        kernel = np.ones((self.close_kernel, self.close_kernel), np.uint8)
        closed = cv2.morphologyEx(blurred, cv2.MORPH_CLOSE, kernel)

        # Deliberately low thresholds for low-contrast documents
        edges = cv2.Canny(closed, self.canny_low, self.canny_high)

        # Thicken edges so small corner gaps close
        dilate_kernel = np.ones((self.dilate_kernel, self.dilate_kernel), np.uint8)
        return cv2.dilate(edges, dilate_kernel)

    def select_contour(self, edge_map: np.ndarray) -> Optional[np.ndarray]:
        """
        Pick the best quadrilateral from the edge map.

        Only the area decides between accepted candidates: largest wins.

        Args:
            edge_map: Binary edge map

        Returns:
            Array (4, 2) float32 in contour order, or None
        """
        candidates = self.find_candidates(edge_map)
        if not candidates:
            return None

        best_quad, best_area = max(candidates, key=lambda c: c[1])
        logger.debug("Selected quadrilateral with area %.0f out of %d candidate(s)", best_area, len(candidates))
        return best_quad

    def find_candidates(self, edge_map: np.ndarray) -> List[Tuple[np.ndarray, float]]:
        """
        All accepted quadrilaterals with their contour area.

        Args:
            edge_map: Binary edge map

        Returns:
            List of (quad, area) tuples, quad being a (4, 2) float32 array
        """
        contours, _ = cv2.findContours(
            edge_map,
            cv2.RETR_EXTERNAL,
            cv2.CHAIN_APPROX_SIMPLE
        )

        h, w = edge_map.shape[:2]
        min_area = (w * h) / self.min_area_divisor

        candidates = []
        for contour in contours:
            area = cv2.contourArea(contour)

            # Too small to be a document at this distance
            if area < min_area:
                continue

            quad = self._approximate_quad(contour)
            if quad is not None:
                candidates.append((quad, float(area)))

        return candidates

    def _approximate_quad(self, contour: np.ndarray) -> Optional[np.ndarray]:
        """
        Approximate a contour with a convex quadrilateral.

        4 vertices are accepted directly, 5 or 6 get a second try with the
        looser tolerance, anything else (including 7+) is dropped.
        """
        peri = cv2.arcLength(contour, True)

        approx = cv2.approxPolyDP(contour, self.approx_epsilon * peri, True)
        if not 4 <= len(approx) <= 6 or not cv2.isContourConvex(approx):
            return None

        if len(approx) == 4:
            return approx.reshape(4, 2).astype(np.float32)

        rough = cv2.approxPolyDP(contour, self.rough_epsilon * peri, True)
        if len(rough) == 4:
            return rough.reshape(4, 2).astype(np.float32)

        return None

    def _to_gray(self, image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            return image
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
