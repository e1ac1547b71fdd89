"""OpenCVCamera 구현체 테스트"""

import threading
import time
from unittest.mock import MagicMock, patch

import cv2
import numpy as np
import pytest

from yenlens.services.camera.base import (
    DeviceAccessError,
    DeviceErrorKind,
    FrameCaptureError,
    PreviewStartError,
)
from yenlens.services.camera.opencv import (
    OpenCVCamera,
    OpenCVSession,
    _classify_open_failure,
    encode_jpeg,
)

OPENCV_MODULE = "yenlens.services.camera.opencv"

FRAME = np.zeros((480, 640, 3), dtype=np.uint8)


def _mock_capture(read_results: list[tuple[bool, np.ndarray | None]]) -> MagicMock:
    capture = MagicMock()
    capture.isOpened.return_value = True
    capture.read.side_effect = read_results
    return capture


class TestOpen:
    async def test_opens_environment_camera(self) -> None:
        camera = OpenCVCamera(facing_indices={"environment": 2, "user": None})
        with patch(f"{OPENCV_MODULE}.cv2.VideoCapture") as mock_capture_cls:
            mock_capture_cls.return_value.isOpened.return_value = True
            session = await camera.open("environment")

        mock_capture_cls.assert_called_once_with(2)
        assert isinstance(session, OpenCVSession)
        assert not session.released

    async def test_unmapped_facing_is_overconstrained(self) -> None:
        camera = OpenCVCamera(facing_indices={"environment": None, "user": 0})
        with pytest.raises(DeviceAccessError) as exc_info:
            await camera.open("environment")

        assert exc_info.value.kind == DeviceErrorKind.OVERCONSTRAINED

    async def test_no_camera_configured_is_not_found(self) -> None:
        camera = OpenCVCamera(facing_indices={"environment": None, "user": None})
        with pytest.raises(DeviceAccessError) as exc_info:
            await camera.open("environment")

        assert exc_info.value.kind == DeviceErrorKind.NOT_FOUND

    async def test_open_failure_is_classified_and_released(self) -> None:
        camera = OpenCVCamera(facing_indices={"environment": 0})
        with (
            patch(f"{OPENCV_MODULE}.cv2.VideoCapture") as mock_capture_cls,
            patch(
                f"{OPENCV_MODULE}._classify_open_failure",
                return_value=DeviceErrorKind.PERMISSION_DENIED,
            ),
        ):
            mock_capture_cls.return_value.isOpened.return_value = False
            with pytest.raises(DeviceAccessError) as exc_info:
                await camera.open("environment")

        assert exc_info.value.kind == DeviceErrorKind.PERMISSION_DENIED
        mock_capture_cls.return_value.release.assert_called_once()


class TestClassifyOpenFailure:
    def test_non_linux_is_not_found(self) -> None:
        with patch(f"{OPENCV_MODULE}.sys") as mock_sys:
            mock_sys.platform = "darwin"
            assert _classify_open_failure(0) == DeviceErrorKind.NOT_FOUND

    def test_missing_device_node_is_not_found(self) -> None:
        with patch(f"{OPENCV_MODULE}.sys") as mock_sys:
            mock_sys.platform = "linux"
            assert _classify_open_failure(987) == DeviceErrorKind.NOT_FOUND


class TestSession:
    async def test_wait_until_playing_skips_empty_frames(self) -> None:
        capture = _mock_capture([(False, None), (True, FRAME)])
        session = OpenCVSession(capture, index=0, jpeg_quality=90, warmup_frames=5)

        await session.wait_until_playing()

        assert capture.read.call_count == 2

    async def test_wait_until_playing_without_frames_fails_to_start(self) -> None:
        capture = _mock_capture([(False, None)] * 3)
        session = OpenCVSession(capture, index=0, jpeg_quality=90, warmup_frames=3)

        with pytest.raises(PreviewStartError):
            await session.wait_until_playing()

    async def test_capture_jpeg_encodes_native_resolution(self) -> None:
        capture = _mock_capture([(True, FRAME)])
        session = OpenCVSession(capture, index=0, jpeg_quality=90, warmup_frames=1)

        jpeg = await session.capture_jpeg()

        assert jpeg.startswith(b"\xff\xd8")

    async def test_capture_read_failure_raises(self) -> None:
        capture = _mock_capture([(False, None)])
        session = OpenCVSession(capture, index=0, jpeg_quality=90, warmup_frames=1)

        with pytest.raises(FrameCaptureError):
            await session.capture_jpeg()

    async def test_release_is_idempotent(self) -> None:
        capture = _mock_capture([])
        session = OpenCVSession(capture, index=0, jpeg_quality=90, warmup_frames=1)

        session.release()
        session.release()

        assert session.released
        capture.release.assert_called_once()

    def test_release_during_read_does_not_block(self) -> None:
        capture = _mock_capture([])
        session = OpenCVSession(capture, index=0, jpeg_quality=90, warmup_frames=1)
        released_capture = threading.Event()
        capture.release.side_effect = lambda: released_capture.set()

        # 다른 스레드에서 read가 진행 중인 상황
        session._lock.acquire()
        try:
            started = time.monotonic()
            session.release()
            assert time.monotonic() - started < 0.5
            assert session.released
            capture.release.assert_not_called()
        finally:
            session._lock.release()

        assert released_capture.wait(timeout=2)
        capture.release.assert_called_once()

    async def test_capture_after_release_raises(self) -> None:
        capture = _mock_capture([(True, FRAME)])
        session = OpenCVSession(capture, index=0, jpeg_quality=90, warmup_frames=1)
        session.release()

        with pytest.raises(FrameCaptureError):
            await session.capture_jpeg()
        capture.read.assert_not_called()


def test_encode_jpeg_keeps_dimensions() -> None:
    jpeg = encode_jpeg(FRAME, quality=80)
    decoded = cv2.imdecode(np.frombuffer(jpeg, dtype=np.uint8), cv2.IMREAD_COLOR)

    assert decoded.shape == FRAME.shape
