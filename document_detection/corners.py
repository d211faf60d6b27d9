"""
Corner ordering for document quadrilaterals
"""

import numpy as np


def order_corners(points: np.ndarray) -> np.ndarray:
    """
    Order 4 points as top-left, top-right, bottom-right, bottom-left.

    Points are split around their centroid into a top pair and a bottom
    pair, each sorted by x. When the split is unbalanced (a strongly rotated
    document gives a 3/1 split), the coordinate sum and difference decide:
    min(x+y) is top-left, max(x+y) bottom-right, min(y-x) top-right and
    max(y-x) bottom-left.

    Args:
        points: Array of 4 points, shape (4, 2) or (4, 1, 2)

    Returns:
        Ordered corners, shape (4, 2), dtype float32
    """
    pts = np.asarray(points, dtype=np.float32).reshape(-1, 2)
    if pts.shape[0] != 4:
        raise ValueError(f"Expected 4 points, got {pts.shape[0]}")

    center = pts.mean(axis=0)

    top = pts[pts[:, 1] < center[1]]
    bottom = pts[pts[:, 1] >= center[1]]

    if len(top) == 2 and len(bottom) == 2:
        # equal x: top keeps the higher point first, bottom the lower one
        top = top[np.lexsort((top[:, 1], top[:, 0]))]
        bottom = bottom[np.lexsort((-bottom[:, 1], bottom[:, 0]))]
        return np.array([top[0], top[1], bottom[1], bottom[0]], dtype=np.float32)

    s = pts.sum(axis=1)
    diff = pts[:, 1] - pts[:, 0]

    tl = pts[np.argmin(s)]
    br = pts[np.argmax(s)]
    tr = pts[np.argmin(diff)]
    bl = pts[np.argmax(diff)]

    return np.array([tl, tr, br, bl], dtype=np.float32)
