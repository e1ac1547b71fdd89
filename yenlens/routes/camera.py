"""Camera API 라우트

서버에 연결된 카메라로 캡처 상태 머신을 구동한다.
start/scan은 허용되지 않는 상태에서 호출되면 무시되고 현재 상태를 그대로 반환.
"""

from fastapi import APIRouter, HTTPException, Response, status

from yenlens.constants import Messages
from yenlens.services import capture as capture_service
from yenlens.services.camera import FrameCaptureError

router = APIRouter(prefix="/camera", tags=["camera"])


@router.get("", response_model=capture_service.CaptureStateResponse)
async def read_state() -> capture_service.CaptureStateResponse:
    return capture_service.get_capture_controller().snapshot()


@router.post("/start", response_model=capture_service.CaptureStateResponse)
async def start() -> capture_service.CaptureStateResponse:
    controller = capture_service.get_capture_controller()
    await controller.start()
    return controller.snapshot()


@router.post("/scan", response_model=capture_service.CaptureStateResponse)
async def scan() -> capture_service.CaptureStateResponse:
    controller = capture_service.get_capture_controller()
    await controller.scan()
    return controller.snapshot()


@router.post("/reset", response_model=capture_service.CaptureStateResponse)
async def reset() -> capture_service.CaptureStateResponse:
    controller = capture_service.get_capture_controller()
    controller.reset()
    return controller.snapshot()


@router.get("/preview", response_class=Response)
async def preview() -> Response:
    """ACTIVE 상태의 현재 프리뷰 프레임 (JPEG)"""
    controller = capture_service.get_capture_controller()
    try:
        frame = await controller.preview_jpeg()
    except capture_service.CameraNotActiveError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "CAMERA_NOT_ACTIVE", "message": Messages.CAMERA_NOT_ACTIVE},
        ) from None
    except FrameCaptureError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "CAMERA_READ_FAILED", "message": Messages.CAMERA_NOT_READABLE},
        ) from None

    return Response(content=frame, media_type="image/jpeg")
