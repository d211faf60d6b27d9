"""
Camera collaborator: supplies capture frames and reports device errors.
"""

import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable, Optional

import cv2

from common.errors import CameraError, CameraErrorCategory
from common.frame import Frame

logger = logging.getLogger(__name__)


@dataclass
class CameraConstraints:
    """
    What the session asks of the camera.

    The preferred resolution is a wish, the minimum (if set) is a hard
    requirement that fails the start with OVERCONSTRAINED.
    """
    device_index: int = 0
    facing_mode: str = "environment"
    preferred_width: int = 3840
    preferred_height: int = 2160
    min_width: Optional[int] = None
    min_height: Optional[int] = None


class FrameSource:
    """
    Interface of anything that can feed the scanner with capture frames.
    """

    def start(self, constraints: CameraConstraints):
        raise NotImplementedError

    def read(self) -> Optional[Frame]:
        """Latest capture frame, or None if no frame is ready yet."""
        raise NotImplementedError

    def stop(self):
        raise NotImplementedError

    @property
    def is_running(self) -> bool:
        raise NotImplementedError


class CameraSource(FrameSource):
    """
    FrameSource backed by cv2.VideoCapture.
    """

    def __init__(
        self,
        allowed: bool = True,
        capture_factory: Callable[[int], "cv2.VideoCapture"] = cv2.VideoCapture,
        device_path_template: Optional[str] = None,
        access_check: Callable[[str, int], bool] = os.access
    ):
        """
        Args:
            allowed: False when camera use is blocked by policy
            capture_factory: Builds the capture object for a device index
            device_path_template: Device node path for a given index, used to
                tell a permission problem from a missing camera. Defaults to
                /dev/video{} on Linux and is not checked elsewhere.
            access_check: Tells whether the device node can be opened read-write
        """
        self.allowed = allowed
        self.capture_factory = capture_factory
        if device_path_template is None and sys.platform.startswith("linux"):
            device_path_template = "/dev/video{}"
        self.device_path_template = device_path_template
        self.access_check = access_check
        self._capture = None

    @property
    def is_running(self) -> bool:
        return self._capture is not None

    def start(self, constraints: CameraConstraints):
        """
        Open the camera.

        Raises:
            CameraError: with the category describing why the camera cannot be used
        """
        if self._capture is not None:
            return

        if not self.allowed:
            raise CameraError(CameraErrorCategory.SECURITY_BLOCKED, "camera use disabled by configuration")

        device_path = self._device_path(constraints.device_index)
        if device_path is not None and os.path.exists(device_path) \
                and not self.access_check(device_path, os.R_OK | os.W_OK):
            raise CameraError(CameraErrorCategory.PERMISSION_DENIED, f"no access to {device_path}")

        try:
            capture = self.capture_factory(constraints.device_index)
        except cv2.error as e:
            raise CameraError(CameraErrorCategory.UNSUPPORTED, str(e)) from e

        if not capture.isOpened():
            capture.release()
            if device_path is not None and os.path.exists(device_path):
                raise CameraError(CameraErrorCategory.CAMERA_BUSY, f"could not open {device_path}")
            raise CameraError(CameraErrorCategory.NOT_FOUND, f"no camera at index {constraints.device_index}")

        # Device selection is by index; the backend has no notion of facing mode
        logger.debug("Opening camera %d (requested facing mode: %s)", constraints.device_index, constraints.facing_mode)
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.preferred_width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.preferred_height)

        ok, image = capture.read()
        if not ok or image is None:
            capture.release()
            raise CameraError(CameraErrorCategory.CAMERA_BUSY, "camera opened but delivers no frames")

        height, width = image.shape[:2]
        if (constraints.min_width is not None and width < constraints.min_width) or \
                (constraints.min_height is not None and height < constraints.min_height):
            capture.release()
            raise CameraError(
                CameraErrorCategory.OVERCONSTRAINED,
                f"got {width}x{height}, need at least {constraints.min_width}x{constraints.min_height}"
            )

        logger.info("Camera %d started at %dx%d", constraints.device_index, width, height)
        self._capture = capture

    def read(self) -> Optional[Frame]:
        if self._capture is None:
            return None

        ok, image = self._capture.read()
        if not ok or image is None or image.size == 0:
            return None

        return Frame(image)

    def stop(self):
        if self._capture is None:
            return

        self._capture.release()
        self._capture = None
        logger.info("Camera released")

    def _device_path(self, index: int) -> Optional[str]:
        if self.device_path_template is None:
            return None
        return self.device_path_template.format(index)
