"""
Live document scanning session: camera, stability tracking, scheduling and
auto-capture.
"""

from .camera import CameraConstraints, CameraSource, FrameSource
from .config import ScannerConfig
from .controller import AutoCaptureController, OverlayUpdate, ScannerState
from .scheduler import CycleScheduler
from .session import ScanSession
from .stability import StabilityTracker

__all__ = [
    'CameraConstraints',
    'CameraSource',
    'FrameSource',
    'ScannerConfig',
    'AutoCaptureController',
    'OverlayUpdate',
    'ScannerState',
    'CycleScheduler',
    'ScanSession',
    'StabilityTracker',
]
