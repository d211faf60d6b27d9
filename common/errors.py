"""
Error taxonomy for the scanning pipeline.

A detection miss is not an error and has no type here; it is handled by
the stability tracker decaying.
"""

from enum import Enum


class ScannerError(Exception):
    """Base class for every error raised by the scanning pipeline."""


class CameraErrorCategory(Enum):
    """Why the camera could not be used"""
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    CAMERA_BUSY = "camera_busy"
    OVERCONSTRAINED = "overconstrained"
    SECURITY_BLOCKED = "security_blocked"
    UNSUPPORTED = "unsupported"


USER_MESSAGES = {
    CameraErrorCategory.PERMISSION_DENIED: "Camera access denied. Allow camera access in the system settings.",
    CameraErrorCategory.NOT_FOUND: "No camera was found on this device.",
    CameraErrorCategory.CAMERA_BUSY: "The camera is already in use by another application.",
    CameraErrorCategory.OVERCONSTRAINED: "The camera does not satisfy the requested resolution.",
    CameraErrorCategory.SECURITY_BLOCKED: "Camera access is blocked by the security policy.",
    CameraErrorCategory.UNSUPPORTED: "This environment does not support camera capture.",
}


class CameraError(ScannerError):
    """
    Fatal device error. The session is closed and the caller is told the
    category so it can show a precise message.
    """

    def __init__(self, category: CameraErrorCategory, detail: str = ""):
        self.category = category
        self.detail = detail
        text = f"{category.value}: {detail}" if detail else category.value
        super().__init__(text)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.category]


class RectificationUnavailable(ScannerError):
    """No usable quadrilateral to rectify (missing, degenerate or collinear)."""


class FrameUnavailable(ScannerError):
    """The frame source could not deliver a frame for capture."""


class ScannerClosed(ScannerError):
    """The scanning session has been closed."""
