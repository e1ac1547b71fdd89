"""Camera Capture 상태 머신

State Flow:
    IDLE -> REQUESTING (start, IDLE 또는 ERROR에서만)
    REQUESTING -> ACTIVE (첫 프레임 수신) | ERROR (카메라 접근 실패)
    ACTIVE -> SCANNING (scan)
    SCANNING -> SUCCESS (분석 성공) | ERROR (분석 실패)
    SUCCESS | ERROR -> IDLE (reset)

카메라 세션은 REQUESTING/ACTIVE 상태에서만 보유한다.
그 외 상태로 진입하는 순간 세션은 해제된다 (_set_state에서 보장).

상태 전이는 순수 함수로 분리되어 있어 I/O 없이 테스트 가능.
허용되지 않는 전이는 입력 상태를 그대로 반환한다 (무시, 큐잉 없음).
"""

import logging
from collections.abc import Callable
from enum import StrEnum

from pydantic import ConfigDict

from yenlens.constants import Facing, Messages
from yenlens.schemas.base import BaseSchema
from yenlens.schemas.conversion import TranslationResult
from yenlens.services.assistant import Assistant, get_assistant
from yenlens.services.camera import (
    CameraDevice,
    CameraSession,
    DeviceAccessError,
    DeviceErrorKind,
    PreviewStartError,
    get_camera,
)

logger = logging.getLogger(__name__)


class CaptureStatus(StrEnum):
    IDLE = "idle"
    REQUESTING = "requesting"
    ACTIVE = "active"
    SCANNING = "scanning"
    SUCCESS = "success"
    ERROR = "error"


SESSION_STATUSES = frozenset({CaptureStatus.REQUESTING, CaptureStatus.ACTIVE})


class CaptureState(BaseSchema):
    """현재 상태 + payload (error 또는 result 중 최대 하나)"""

    model_config = ConfigDict(frozen=True)

    status: CaptureStatus = CaptureStatus.IDLE
    error: str | None = None
    result: TranslationResult | None = None


class CaptureStateResponse(CaptureState):
    has_session: bool = False


class CameraNotActiveError(Exception):
    pass


# --- 순수 전이 함수 ---


def request_start(state: CaptureState) -> CaptureState:
    if state.status not in (CaptureStatus.IDLE, CaptureStatus.ERROR):
        return state
    return CaptureState(status=CaptureStatus.REQUESTING)


def camera_ready(state: CaptureState) -> CaptureState:
    if state.status != CaptureStatus.REQUESTING:
        return state
    return CaptureState(status=CaptureStatus.ACTIVE)


def camera_failed(state: CaptureState, message: str) -> CaptureState:
    if state.status != CaptureStatus.REQUESTING:
        return state
    return CaptureState(status=CaptureStatus.ERROR, error=message)


def begin_scan(state: CaptureState) -> CaptureState:
    if state.status != CaptureStatus.ACTIVE:
        return state
    return CaptureState(status=CaptureStatus.SCANNING)


def scan_succeeded(state: CaptureState, result: TranslationResult) -> CaptureState:
    if state.status != CaptureStatus.SCANNING:
        return state
    return CaptureState(status=CaptureStatus.SUCCESS, result=result)


def scan_failed(state: CaptureState, message: str) -> CaptureState:
    if state.status != CaptureStatus.SCANNING:
        return state
    return CaptureState(status=CaptureStatus.ERROR, error=message)


def reset_state(state: CaptureState) -> CaptureState:
    return CaptureState()


_DEVICE_ERROR_MESSAGES: dict[DeviceErrorKind, str] = {
    DeviceErrorKind.PERMISSION_DENIED: Messages.CAMERA_PERMISSION_DENIED,
    DeviceErrorKind.NOT_FOUND: Messages.CAMERA_NOT_FOUND,
    DeviceErrorKind.NOT_READABLE: Messages.CAMERA_NOT_READABLE,
    DeviceErrorKind.OVERCONSTRAINED: Messages.CAMERA_OVERCONSTRAINED,
}


def device_error_message(error: DeviceAccessError) -> str:
    """카메라 접근 실패 → 사용자 메시지 (스페인어)"""
    message = _DEVICE_ERROR_MESSAGES.get(error.kind)
    if message is not None:
        return message
    return Messages.CAMERA_UNKNOWN.format(detail=error.detail or error.kind)


# --- 컨트롤러 ---


class CaptureController:
    """카메라 세션을 소유하고 상태 머신을 구동

    reset 이후 도착한 start/scan 결과는 epoch 비교로 버리고, 획득한 자원은 해제한다.
    """

    def __init__(
        self,
        camera: CameraDevice,
        assistant: Assistant,
        facing: str = Facing.ENVIRONMENT,
        listener: Callable[[CaptureState], None] | None = None,
    ) -> None:
        self._camera = camera
        self._assistant = assistant
        self._facing = facing
        self._listener = listener
        self._state = CaptureState()
        self._session: CameraSession | None = None
        self._epoch = 0
        self._capturing = False

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def has_session(self) -> bool:
        return self._session is not None

    def snapshot(self) -> CaptureStateResponse:
        return CaptureStateResponse(
            status=self._state.status,
            error=self._state.error,
            result=self._state.result,
            has_session=self.has_session,
        )

    async def start(self) -> CaptureState:
        """카메라 획득 → 프리뷰 재생 대기 → ACTIVE

        IDLE/ERROR 이외의 상태에서는 무시.
        """
        next_state = request_start(self._state)
        if next_state is self._state:
            logger.info(f"start 무시: status={self._state.status}")
            return self._state

        self._epoch += 1
        epoch = self._epoch
        self._set_state(next_state)

        session: CameraSession | None = None
        message: str | None = None
        try:
            session = await self._camera.open(self._facing)
            if epoch != self._epoch:
                session.release()
                return self._state
            self._session = session
            await session.wait_until_playing()
        except DeviceAccessError as e:
            logger.warning(f"카메라 접근 실패: {e}")
            message = device_error_message(e)
        except PreviewStartError as e:
            logger.warning(f"카메라 프리뷰 시작 실패: {e}")
            message = Messages.CAMERA_PREVIEW_FAILED
        except Exception as e:
            logger.error(f"카메라 초기화 중 예기치 않은 오류: {e}", exc_info=True)
            message = device_error_message(
                DeviceAccessError(DeviceErrorKind.UNKNOWN, type(e).__name__)
            )

        if message is not None:
            if session is not None:
                session.release()
            if epoch != self._epoch:
                return self._state
            self._set_state(camera_failed(self._state, message))
            return self._state

        if epoch != self._epoch:
            return self._state

        self._set_state(camera_ready(self._state))
        return self._state

    async def scan(self) -> CaptureState:
        """프레임 1장 캡처 → 세션 해제 → 이미지 분석

        ACTIVE 이외의 상태(또는 캡처 진행 중)에서는 무시.
        """
        session = self._session
        if self._state.status != CaptureStatus.ACTIVE or self._capturing or session is None:
            logger.info(f"scan 무시: status={self._state.status}")
            return self._state

        epoch = self._epoch
        self._capturing = True
        try:
            image = await session.capture_jpeg()
        except Exception as e:
            if epoch != self._epoch:
                return self._state
            logger.error(f"프레임 캡처 실패: {e}", exc_info=True)
            self._set_state(begin_scan(self._state))
            self._set_state(scan_failed(self._state, Messages.ANALYSIS_FAILED))
            return self._state
        finally:
            self._capturing = False

        if epoch != self._epoch:
            return self._state

        # SCANNING 진입 시 세션 해제 (네트워크 호출 동안 카메라를 잡고 있지 않음)
        self._set_state(begin_scan(self._state))

        try:
            result = await self._assistant.request_image_analysis(image)
        except Exception as e:
            logger.error(f"이미지 분석 실패: {e}", exc_info=True)
            if epoch != self._epoch:
                return self._state
            self._set_state(scan_failed(self._state, Messages.ANALYSIS_FAILED))
            return self._state

        if epoch != self._epoch:
            return self._state

        logger.info(f"이미지 분석 완료: {len(result.conversions)}개 가격 감지")
        self._set_state(scan_succeeded(self._state, result))
        return self._state

    def reset(self) -> CaptureState:
        """IDLE로 복귀 (payload 초기화, 세션 해제). 진행 중인 start/scan 결과는 버린다."""
        if self._state.status == CaptureStatus.IDLE:
            self._release_session()
            return self._state

        self._epoch += 1
        self._set_state(reset_state(self._state))
        return self._state

    def close(self) -> None:
        """teardown: 상태와 무관하게 세션 해제"""
        self._epoch += 1
        self._release_session()
        if self._state.status != CaptureStatus.IDLE:
            self._set_state(reset_state(self._state))

    async def preview_jpeg(self) -> bytes:
        """Raises:
        CameraNotActiveError: ACTIVE 상태가 아님
        """
        session = self._session
        if self._state.status != CaptureStatus.ACTIVE or session is None:
            raise CameraNotActiveError(f"status={self._state.status}")
        return await session.read_preview_jpeg()

    def _set_state(self, state: CaptureState) -> None:
        if state is self._state:
            return

        if state.status not in SESSION_STATUSES:
            self._release_session()

        previous = self._state
        self._state = state
        logger.info(f"capture 상태 전이: {previous.status} → {state.status}")

        if self._listener is not None:
            self._listener(state)

    def _release_session(self) -> None:
        session = self._session
        self._session = None
        if session is not None:
            session.release()


class _ControllerHolder:
    instance: CaptureController | None = None


def get_capture_controller() -> CaptureController:
    if _ControllerHolder.instance is None:
        _ControllerHolder.instance = CaptureController(
            camera=get_camera(),
            assistant=get_assistant(),
        )
    return _ControllerHolder.instance


def set_capture_controller(controller: CaptureController | None) -> None:
    _ControllerHolder.instance = controller


def close_capture_controller() -> None:
    if _ControllerHolder.instance is not None:
        _ControllerHolder.instance.close()
        _ControllerHolder.instance = None
