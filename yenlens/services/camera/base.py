"""Camera Protocol

카메라 장치 접근과 세션(열린 스트림) 핸들 인터페이스 정의.
세션은 명시적으로 release()해야 하며, 소멸자에 의존하지 않는다.
"""

from enum import StrEnum
from typing import Protocol


class DeviceErrorKind(StrEnum):
    """카메라 접근 실패 분류 (감지 우선순위 순)"""

    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    NOT_READABLE = "not_readable"
    OVERCONSTRAINED = "overconstrained"
    UNKNOWN = "unknown"


class DeviceAccessError(Exception):
    def __init__(self, kind: DeviceErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(f"[{kind}] {detail}" if detail else f"[{kind}]")


class FrameCaptureError(Exception):
    """열린 세션에서 프레임 읽기/인코딩 실패"""


class PreviewStartError(Exception):
    """장치는 열렸지만 스트림이 프레임을 내보내지 않음"""


class CameraSession(Protocol):
    """열린 카메라 스트림 핸들 (capture flow 전용)"""

    @property
    def released(self) -> bool: ...

    async def wait_until_playing(self) -> None:
        """첫 프레임이 들어올 때까지 대기

        Raises:
            PreviewStartError: 스트림이 프레임을 내보내지 않음
        """
        ...

    async def read_preview_jpeg(self) -> bytes:
        """현재 프리뷰 프레임 (JPEG)

        Raises:
            FrameCaptureError: 읽기/인코딩 실패
        """
        ...

    async def capture_jpeg(self) -> bytes:
        """원본 해상도 정지 프레임 1장 (JPEG)

        Raises:
            FrameCaptureError: 읽기/인코딩 실패
        """
        ...

    def release(self) -> None:
        """스트림 해제 (여러 번 호출해도 안전)"""
        ...


class CameraDevice(Protocol):
    """카메라 장치 인터페이스

    구현체:
    - OpenCVCamera: cv2.VideoCapture
    """

    async def open(self, facing: str) -> CameraSession:
        """facing("environment" | "user")에 해당하는 카메라 열기

        Raises:
            DeviceAccessError: 권한 거부, 장치 없음, 사용 중, facing 불가, 기타
        """
        ...
