"""
Document Detection Module

Finds the outline of a single document in downsampled video frames and
draws the tracking overlay.
"""

from .detector import DocumentDetector
from .corners import order_corners
from .visualizer import OverlayVisualizer

__all__ = ['DocumentDetector', 'order_corners', 'OverlayVisualizer']
