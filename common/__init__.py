from .frame import Frame
from .errors import (
    ScannerError,
    CameraError,
    CameraErrorCategory,
    RectificationUnavailable,
    FrameUnavailable,
    ScannerClosed,
)

__all__ = [
    'Frame',
    'ScannerError',
    'CameraError',
    'CameraErrorCategory',
    'RectificationUnavailable',
    'FrameUnavailable',
    'ScannerClosed',
]
