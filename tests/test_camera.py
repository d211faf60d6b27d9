import cv2
import numpy as np
import pytest

from common.errors import CameraError, CameraErrorCategory
from scanner.camera import CameraConstraints, CameraSource


class FakeCapture:
    """Stand-in for cv2.VideoCapture"""

    def __init__(self, opened=True, frames=True, size=(1920, 1080)):
        self.opened = opened
        self.frames = frames
        self.size = size
        self.properties = {}
        self.released = False

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.properties[prop] = value
        return True

    def read(self):
        if not self.frames:
            return False, None
        width, height = self.size
        return True, np.zeros((height, width, 3), dtype=np.uint8)

    def release(self):
        self.released = True


@pytest.fixture
def device(tmp_path):
    """A device node that exists"""
    path = tmp_path / "video0"
    path.touch()
    return str(tmp_path / "video{}")


@pytest.fixture
def missing_device(tmp_path):
    return str(tmp_path / "missing{}")


def make_source(capture, template, **kwargs):
    return CameraSource(
        capture_factory=lambda index: capture,
        device_path_template=template,
        access_check=kwargs.pop("access_check", lambda path, mode: True),
        **kwargs
    )


class TestCameraSource:
    def test_start_and_read(self, device):
        capture = FakeCapture()
        source = make_source(capture, device)

        source.start(CameraConstraints())

        assert source.is_running
        assert capture.properties[cv2.CAP_PROP_FRAME_WIDTH] == 3840
        assert capture.properties[cv2.CAP_PROP_FRAME_HEIGHT] == 2160
        frame = source.read()
        assert (frame.width, frame.height) == (1920, 1080)

    def test_read_before_start(self, device):
        source = make_source(FakeCapture(), device)
        assert source.read() is None

    def test_read_returns_none_without_frame(self, device):
        capture = FakeCapture()
        source = make_source(capture, device)
        source.start(CameraConstraints())

        capture.frames = False
        assert source.read() is None

    def test_blocked_by_policy(self, device):
        source = make_source(FakeCapture(), device, allowed=False)
        with pytest.raises(CameraError) as excinfo:
            source.start(CameraConstraints())
        assert excinfo.value.category is CameraErrorCategory.SECURITY_BLOCKED

    def test_permission_denied(self, device):
        source = make_source(FakeCapture(), device, access_check=lambda path, mode: False)
        with pytest.raises(CameraError) as excinfo:
            source.start(CameraConstraints())
        assert excinfo.value.category is CameraErrorCategory.PERMISSION_DENIED
        assert not source.is_running

    def test_not_found(self, missing_device):
        capture = FakeCapture(opened=False)
        source = make_source(capture, missing_device)
        with pytest.raises(CameraError) as excinfo:
            source.start(CameraConstraints())
        assert excinfo.value.category is CameraErrorCategory.NOT_FOUND
        assert capture.released

    def test_busy_when_device_exists_but_cannot_open(self, device):
        source = make_source(FakeCapture(opened=False), device)
        with pytest.raises(CameraError) as excinfo:
            source.start(CameraConstraints())
        assert excinfo.value.category is CameraErrorCategory.CAMERA_BUSY

    def test_busy_when_no_frames(self, device):
        capture = FakeCapture(frames=False)
        source = make_source(capture, device)
        with pytest.raises(CameraError) as excinfo:
            source.start(CameraConstraints())
        assert excinfo.value.category is CameraErrorCategory.CAMERA_BUSY
        assert capture.released

    def test_overconstrained(self, device):
        source = make_source(FakeCapture(size=(640, 480)), device)
        with pytest.raises(CameraError) as excinfo:
            source.start(CameraConstraints(min_width=1280, min_height=720))
        assert excinfo.value.category is CameraErrorCategory.OVERCONSTRAINED

    def test_unsupported_backend(self, device):
        def broken_factory(index):
            raise cv2.error("no backend")

        source = CameraSource(capture_factory=broken_factory, device_path_template=device,
                              access_check=lambda path, mode: True)
        with pytest.raises(CameraError) as excinfo:
            source.start(CameraConstraints())
        assert excinfo.value.category is CameraErrorCategory.UNSUPPORTED

    def test_stop_is_idempotent(self, device):
        capture = FakeCapture()
        source = make_source(capture, device)
        source.start(CameraConstraints())

        source.stop()
        source.stop()

        assert capture.released
        assert not source.is_running

    def test_error_user_message(self):
        error = CameraError(CameraErrorCategory.PERMISSION_DENIED, "no access to /dev/video0")
        assert "denied" in error.user_message
        assert "permission_denied" in str(error)
