import cv2
import numpy as np


class Frame:
    """
    A single video frame.

    Two resolutions exist side by side: the capture frame at native camera
    resolution, and the analysis frame derived from it by downscaling.
    """

    def __init__(self, image: np.ndarray):
        if image is None or image.size == 0 or image.ndim not in (2, 3):
            raise ValueError("Frame needs a non-empty 2D or 3D pixel buffer")
        self.image = image

    def __str__(self) -> str:
        return f"Frame({self.width}x{self.height}, channels={self.channels})"

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def channels(self) -> int:
        return 1 if self.image.ndim == 2 else int(self.image.shape[2])

    def analysis_size(self, analysis_width: int) -> tuple[int, int]:
        """
        Size of the analysis frame for a fixed analysis width.

        Height keeps the aspect ratio and is floored, never below 1 pixel.
        """
        if analysis_width <= 0:
            raise ValueError("analysis_width must be positive")
        height = int(self.height * (analysis_width / self.width))
        return analysis_width, max(1, height)

    def downscale(self, analysis_width: int) -> "Frame":
        """
        Derive the analysis frame from this capture frame.
        """
        width, height = self.analysis_size(analysis_width)
        if (width, height) == (self.width, self.height):
            return Frame(self.image.copy())
        interpolation = cv2.INTER_AREA if width < self.width else cv2.INTER_LINEAR
        return Frame(cv2.resize(self.image, (width, height), interpolation=interpolation))

    def copy(self) -> "Frame":
        return Frame(self.image.copy())
