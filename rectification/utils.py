import cv2
import numpy as np
from typing import Tuple

from common.errors import RectificationUnavailable


def target_size(corners: np.ndarray) -> Tuple[float, float]:
    """
    Measure the output rectangle from the quadrilateral's edges.

    The longer of each pair of opposing edges is used, so a document shot
    at a strong angle is not under-sized.

    Args:
        corners: 4 points ordered top-left, top-right, bottom-right, bottom-left

    Returns:
        (width, height) in pixels, unrounded
    """
    (tl, tr, br, bl) = np.asarray(corners, dtype=np.float64).reshape(4, 2)

    # Width of the output
    widthA = np.sqrt(((br[0] - bl[0]) ** 2) + ((br[1] - bl[1]) ** 2))
    widthB = np.sqrt(((tr[0] - tl[0]) ** 2) + ((tr[1] - tl[1]) ** 2))

    # Height of the output
    heightA = np.sqrt(((tr[0] - br[0]) ** 2) + ((tr[1] - br[1]) ** 2))
    heightB = np.sqrt(((tl[0] - bl[0]) ** 2) + ((tl[1] - bl[1]) ** 2))

    return float(max(widthA, widthB)), float(max(heightA, heightB))


def quad_area(corners: np.ndarray) -> float:
    """Unsigned polygon area (shoelace) of the ordered corners."""
    pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)
    x = pts[:, 0]
    y = pts[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))) / 2.0)


def is_degenerate(corners: np.ndarray, min_area: float = 1.0, min_sine: float = 1e-3) -> bool:
    """
    Check whether a quadrilateral cannot be rectified.

    Degenerate means: non-finite coordinates, coincident corners, (near)
    zero area, or three consecutive corners on one line.

    Args:
        corners: 4 ordered points
        min_area: Smallest acceptable area in square pixels
        min_sine: Smallest acceptable |sin| of the angle at any corner

    Returns:
        True if the transform must not be attempted
    """
    pts = np.asarray(corners, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] != 4 or not np.all(np.isfinite(pts)):
        return True

    if quad_area(pts) < min_area:
        return True

    for i in range(4):
        prev_pt = pts[(i - 1) % 4]
        pt = pts[i]
        next_pt = pts[(i + 1) % 4]

        v1 = prev_pt - pt
        v2 = next_pt - pt
        n1 = np.linalg.norm(v1)
        n2 = np.linalg.norm(v2)
        if n1 < 1e-6 or n2 < 1e-6:
            return True

        cross = v1[0] * v2[1] - v1[1] * v2[0]
        if abs(cross) / (n1 * n2) < min_sine:
            return True

    width, height = target_size(pts)
    return width < 1.0 or height < 1.0


def four_point_transform(image: np.ndarray, corners: np.ndarray) -> np.ndarray:
    """
    Warp the quadrilateral onto an axis-aligned rectangle.

    Args:
        image: Source image
        corners: 4 points ordered top-left, top-right, bottom-right, bottom-left,
                 in the image's own pixel coordinates

    Returns:
        Warped image (top-down view), sized by target_size()

    Raises:
        RectificationUnavailable: if the quadrilateral is degenerate
    """
    rect = np.asarray(corners, dtype=np.float32).reshape(4, 2)
    if is_degenerate(rect):
        raise RectificationUnavailable("Degenerate quadrilateral")

    width, height = target_size(rect)
    maxWidth = max(1, int(round(width)))
    maxHeight = max(1, int(round(height)))

    # Target corners
    dst = np.array([
        [0, 0],
        [maxWidth, 0],
        [maxWidth, maxHeight],
        [0, maxHeight]
    ], dtype="float32")

    try:
        M = cv2.getPerspectiveTransform(rect, dst)
    except cv2.error as e:
        raise RectificationUnavailable(f"Perspective transform failed: {e}") from e

    if not np.all(np.isfinite(M)):
        raise RectificationUnavailable("Perspective transform is not finite")

    return cv2.warpPerspective(
        image,
        M,
        (maxWidth, maxHeight),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0
    )


def encode_jpeg(image: np.ndarray, quality: int = 90) -> bytes:
    """
    Encode an image as JPEG bytes.

    Args:
        image: BGR, BGRA or grayscale image
        quality: JPEG quality 0-100
    """
    if image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    ok, buffer = cv2.imencode('.jpg', image, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise ValueError("Failed to encode image as JPEG")

    return buffer.tobytes()
