"""OpenCV 기반 카메라 구현체

facing은 장치 인덱스로 매핑한다 (설정: CAMERA_ENVIRONMENT_INDEX, CAMERA_USER_INDEX).
cv2 호출은 블로킹이므로 asyncio.to_thread로 실행.
"""

import asyncio
import logging
import os
import sys
import threading
from pathlib import Path

import cv2
import numpy as np

from yenlens.services.camera.base import (
    DeviceAccessError,
    DeviceErrorKind,
    FrameCaptureError,
    PreviewStartError,
)

logger = logging.getLogger(__name__)


def _classify_open_failure(index: int) -> DeviceErrorKind:
    """VideoCapture가 열리지 않은 원인 추정

    Linux는 /dev/videoN 존재/권한으로 구분. 그 외 플랫폼은 장치 없음으로 본다.
    """
    if sys.platform.startswith("linux"):
        device = Path(f"/dev/video{index}")
        if not device.exists():
            return DeviceErrorKind.NOT_FOUND
        if not os.access(device, os.R_OK | os.W_OK):
            return DeviceErrorKind.PERMISSION_DENIED
        return DeviceErrorKind.NOT_READABLE
    return DeviceErrorKind.NOT_FOUND


def encode_jpeg(frame: np.ndarray, quality: int) -> bytes:
    """BGR 프레임 → JPEG bytes

    Raises:
        FrameCaptureError: 인코딩 실패
    """
    ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise FrameCaptureError("JPEG 인코딩 실패")
    return buffer.tobytes()


class OpenCVSession:
    """열린 cv2.VideoCapture 핸들

    read와 capture 해제는 lock으로 직렬화한다. release()는 이벤트 루프에서 호출된다.
    """

    def __init__(
        self, capture: cv2.VideoCapture, index: int, jpeg_quality: int, warmup_frames: int
    ) -> None:
        self._capture = capture
        self._index = index
        self._jpeg_quality = jpeg_quality
        self._warmup_frames = max(1, warmup_frames)
        self._lock = threading.Lock()
        self._released = False
        self._capture_closed = False

    @property
    def released(self) -> bool:
        return self._released

    async def wait_until_playing(self) -> None:
        await asyncio.to_thread(self._wait_until_playing_sync)

    async def read_preview_jpeg(self) -> bytes:
        frame = await asyncio.to_thread(self._read_frame)
        return encode_jpeg(frame, self._jpeg_quality)

    async def capture_jpeg(self) -> bytes:
        frame = await asyncio.to_thread(self._read_frame)
        height, width = frame.shape[:2]
        logger.info(f"프레임 캡처: camera={self._index} {width}x{height}")
        return encode_jpeg(frame, self._jpeg_quality)

    def release(self) -> None:
        """호출 스레드를 막지 않는다. read 진행 중이면 별도 스레드가 lock을 기다려 해제."""
        if self._released:
            return
        self._released = True
        if self._lock.acquire(blocking=False):
            try:
                self._close_capture()
            finally:
                self._lock.release()
            return
        threading.Thread(
            target=self._release_after_read, name=f"camera-{self._index}-release", daemon=True
        ).start()

    def _release_after_read(self) -> None:
        with self._lock:
            self._close_capture()

    def _close_capture(self) -> None:
        # lock 보유 상태에서만 호출
        if self._capture_closed:
            return
        self._capture.release()
        self._capture_closed = True
        logger.info(f"카메라 해제: camera={self._index}")

    def _wait_until_playing_sync(self) -> None:
        # 일부 장치는 처음 몇 프레임이 비어 있음
        for _ in range(self._warmup_frames):
            with self._lock:
                if self._released:
                    raise DeviceAccessError(DeviceErrorKind.UNKNOWN, "세션이 이미 해제됨")
                ok, _frame = self._capture.read()
            if ok:
                return
        raise PreviewStartError(f"camera={self._index} 프레임 수신 없음")

    def _read_frame(self) -> np.ndarray:
        with self._lock:
            if self._released:
                raise FrameCaptureError("세션이 이미 해제됨")
            ok, frame = self._capture.read()
        if not ok or frame is None:
            raise FrameCaptureError(f"camera={self._index} 프레임 읽기 실패")
        return frame


class OpenCVCamera:
    """cv2.VideoCapture를 사용한 카메라 장치"""

    def __init__(
        self,
        facing_indices: dict[str, int | None],
        jpeg_quality: int = 90,
        warmup_frames: int = 5,
    ) -> None:
        self._facing_indices = facing_indices
        self._jpeg_quality = jpeg_quality
        self._warmup_frames = warmup_frames

    async def open(self, facing: str) -> OpenCVSession:
        return await asyncio.to_thread(self._open_sync, facing)

    def _open_sync(self, facing: str) -> OpenCVSession:
        index = self._facing_indices.get(facing)
        if index is None:
            if not any(i is not None for i in self._facing_indices.values()):
                raise DeviceAccessError(DeviceErrorKind.NOT_FOUND, "설정된 카메라 없음")
            raise DeviceAccessError(
                DeviceErrorKind.OVERCONSTRAINED, f"facing={facing} 카메라 없음"
            )

        try:
            capture = cv2.VideoCapture(index)
        except PermissionError as e:
            raise DeviceAccessError(DeviceErrorKind.PERMISSION_DENIED, str(e)) from e
        except cv2.error as e:
            raise DeviceAccessError(DeviceErrorKind.UNKNOWN, str(e)) from e

        if not capture.isOpened():
            capture.release()
            kind = _classify_open_failure(index)
            raise DeviceAccessError(kind, f"camera={index} 열기 실패")

        logger.info(f"카메라 열기: facing={facing} camera={index}")
        return OpenCVSession(capture, index, self._jpeg_quality, self._warmup_frames)
