from .mapping import NormalizedQuadrilateral
from .rectifier import PerspectiveRectifier, CaptureResult, FALLBACK_NOTICE
from .utils import target_size, is_degenerate, four_point_transform, encode_jpeg

__all__ = [
    'NormalizedQuadrilateral',
    'PerspectiveRectifier',
    'CaptureResult',
    'FALLBACK_NOTICE',
    'target_size',
    'is_degenerate',
    'four_point_transform',
    'encode_jpeg',
]
