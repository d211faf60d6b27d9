import logging
from typing import Optional

from rectification.mapping import NormalizedQuadrilateral
from .stability import StabilityTracker

logger = logging.getLogger(__name__)


class ScanSession:
    """
    Mutable state of one scanning session: the stability counter and the
    last known detection.

    The stored quadrilateral is immutable; each hit replaces the reference,
    so a capture that took a snapshot keeps seeing the same corners.
    """

    def __init__(self, tracker: Optional[StabilityTracker] = None):
        self.tracker = tracker or StabilityTracker()
        self._last_quad: Optional[NormalizedQuadrilateral] = None

    @property
    def last_quad(self) -> Optional[NormalizedQuadrilateral]:
        return self._last_quad

    @property
    def overlay_quad(self) -> Optional[NormalizedQuadrilateral]:
        """Quadrilateral to draw: the last known one while the lock is held."""
        return self._last_quad if self.tracker.has_lock else None

    @property
    def is_stable(self) -> bool:
        return self.tracker.is_stable

    def record_hit(self, quad: NormalizedQuadrilateral):
        self._last_quad = quad
        self.tracker.hit()

    def record_miss(self):
        self.tracker.miss()
        if not self.tracker.has_lock and self._last_quad is not None:
            logger.debug("Lock lost, dropping last known quadrilateral")
            self._last_quad = None

    def snapshot(self) -> Optional[NormalizedQuadrilateral]:
        """Frozen copy of the last known detection for a capture."""
        return self._last_quad

    def reset(self):
        self.tracker.reset()
        self._last_quad = None
