"""
Visualization of the tracked document outline
"""

import cv2
import numpy as np
from typing import Tuple, Optional


class OverlayVisualizer:
    """
    Class for drawing the tracking outline over the preview.

    A tentative lock is drawn amber with a light fill, a stable lock green
    with a stronger fill.
    """

    def __init__(
        self,
        tentative_color: Tuple[int, int, int] = (20, 173, 250),  # Amber in BGR
        stable_color: Tuple[int, int, int] = (0, 255, 0),  # Green in BGR
        border_thickness: int = 3,
        tentative_alpha: float = 0.1,
        stable_alpha: float = 0.2
    ):
        """
        Initialize the visualizer.

        Args:
            tentative_color: Outline color before the lock is stable (BGR)
            stable_color: Outline color once the lock is stable (BGR)
            border_thickness: Outline thickness in pixels
            tentative_alpha: Fill opacity before the lock is stable
            stable_alpha: Fill opacity once the lock is stable
        """
        self.tentative_color = tentative_color
        self.stable_color = stable_color
        self.border_thickness = border_thickness
        self.tentative_alpha = tentative_alpha
        self.stable_alpha = stable_alpha

    def visualize(
        self,
        image: np.ndarray,
        polygon: Optional[np.ndarray],
        stable: bool = False
    ) -> np.ndarray:
        """
        Draw the outline on a copy of the image.

        Args:
            image: Preview image (BGR), already at display size
            polygon: 4 points in display coordinates, or None
            stable: Whether the lock is stable

        Returns:
            Image with visualization
        """
        if image is None:
            return image

        result = image.copy()
        if polygon is None:
            return result

        color = self.stable_color if stable else self.tentative_color
        alpha = self.stable_alpha if stable else self.tentative_alpha
        points = np.round(np.asarray(polygon, dtype=np.float32)).astype(np.int32).reshape(-1, 1, 2)

        # Transparent fill
        overlay = result.copy()
        cv2.fillPoly(overlay, [points], color)
        result = cv2.addWeighted(overlay, alpha, result, 1 - alpha, 0)

        cv2.polylines(result, [points], True, color, self.border_thickness)

        return result

    def draw_status(self, image: np.ndarray, text: str, stable: bool = False) -> np.ndarray:
        """
        Draw a status label at the top of the image, in place.

        Args:
            image: Image to draw on
            text: Label text
            stable: Picks the label background color

        Returns:
            The same image
        """
        h, w = image.shape[:2]
        font = cv2.FONT_HERSHEY_SIMPLEX
        font_scale = 0.6
        thickness = 1

        (text_w, text_h), baseline = cv2.getTextSize(text, font, font_scale, thickness)
        x = max(0, (w - text_w) // 2)
        y = max(text_h + 10, int(h * 0.15))

        background = self.stable_color if stable else (0, 0, 0)
        cv2.rectangle(
            image,
            (x - 10, y - text_h - 8),
            (x + text_w + 10, y + baseline + 4),
            background,
            -1
        )
        cv2.putText(image, text, (x, y), font, font_scale, (255, 255, 255), thickness, cv2.LINE_AA)

        return image
