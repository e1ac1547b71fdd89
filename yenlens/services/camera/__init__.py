"""Camera 모듈

사용법:
    from yenlens.services.camera import get_camera

    session = await get_camera().open("environment")
    try:
        await session.wait_until_playing()
        jpeg = await session.capture_jpeg()
    finally:
        session.release()

백엔드 선택 (.env CAMERA_PROVIDER):
    - "opencv": cv2.VideoCapture (기본값)
"""

from yenlens.config import get_settings
from yenlens.constants import Facing
from yenlens.services.camera.base import (
    CameraDevice,
    CameraSession,
    DeviceAccessError,
    DeviceErrorKind,
    FrameCaptureError,
    PreviewStartError,
)
from yenlens.services.camera.opencv import OpenCVCamera

__all__ = [
    "CameraDevice",
    "CameraSession",
    "DeviceAccessError",
    "DeviceErrorKind",
    "FrameCaptureError",
    "PreviewStartError",
    "get_camera",
    "set_camera",
]

_camera: CameraDevice | None = None


def get_camera() -> CameraDevice:
    """설정에 따라 카메라 백엔드 반환"""
    global _camera
    if _camera is None:
        settings = get_settings()
        if settings.camera_provider == "opencv":
            _camera = OpenCVCamera(
                facing_indices={
                    Facing.ENVIRONMENT: settings.camera_environment_index,
                    Facing.USER: settings.camera_user_index,
                },
                jpeg_quality=settings.camera_jpeg_quality,
                warmup_frames=settings.camera_warmup_frames,
            )
        else:
            raise ValueError(f"Unknown camera provider: {settings.camera_provider!r}")
    return _camera


def set_camera(camera: CameraDevice | None) -> None:
    """카메라 백엔드 설정 (테스트용)"""
    global _camera
    _camera = camera
