"""
Mapping between analysis-frame pixels, normalized coordinates and
capture-frame pixels.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

Point = Tuple[float, float]


@dataclass(frozen=True)
class NormalizedQuadrilateral:
    """
    4 corners as fractions of the frame width/height at detection time.

    This is the only form a detection is kept in across cycles and
    resolutions. It is plain immutable data, so a capture can hold on to
    it while the next analysis cycle replaces the session's copy.
    """
    points: Tuple[Point, Point, Point, Point]

    def __post_init__(self):
        if len(self.points) != 4:
            raise ValueError("A quadrilateral needs exactly 4 points")
        for x, y in self.points:
            if not (0.0 <= x <= 1.0 and 0.0 <= y <= 1.0):
                raise ValueError(f"Normalized point out of range: ({x}, {y})")

    @classmethod
    def from_pixels(cls, corners: np.ndarray, width: int, height: int) -> "NormalizedQuadrilateral":
        """
        Normalize corners found in a frame of the given size.

        Args:
            corners: Array (4, 2) in pixel coordinates
            width: Width of the frame the corners were found in
            height: Height of the frame the corners were found in
        """
        if width <= 0 or height <= 0:
            raise ValueError("Frame size must be positive")

        pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)
        scaled = pts / np.array([width, height], dtype=np.float64)
        # contour points sit on pixel centres, never past the frame
        scaled = np.clip(scaled, 0.0, 1.0)

        return cls(tuple((float(x), float(y)) for x, y in scaled))

    def to_pixels(self, width: int, height: int) -> np.ndarray:
        """
        Corners in pixel coordinates of a frame with the given size.

        Used both for the full-resolution capture frame and for the display
        surface the overlay is drawn on.
        """
        pts = np.array(self.points, dtype=np.float64)
        return (pts * np.array([width, height], dtype=np.float64)).astype(np.float32)

    def as_array(self) -> np.ndarray:
        return np.array(self.points, dtype=np.float32)
