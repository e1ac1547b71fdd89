"""Analyze 서비스: 클라이언트가 촬영한 이미지 분석

브라우저 등에서 직접 캡처한 프레임을 업로드받아 JPEG로 정규화한 뒤 Assistant에 분석을 요청한다.
서버 측 카메라 흐름(capture.py)과 같은 Assistant 계약을 사용.
"""

import asyncio
import io
import logging

from fastapi import UploadFile
from PIL import Image

from yenlens.constants import Limits, Messages
from yenlens.schemas.conversion import TranslationResult
from yenlens.services.assistant import Assistant, AssistantError, get_assistant

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB
JPEG_QUALITY = 90


class AnalyzeError(Exception):
    """Analyze 작업 관련 에러

    code로 구체적인 원인 구분:
    - INVALID_IMAGE: 형식/크기 위반 또는 디코딩 실패 (400)
    - ANALYSIS_FAILED: 외부 서비스 호출 실패 또는 응답 형식 오류 (502)
    """

    STATUS_MAP: dict[str, int] = {
        "INVALID_IMAGE": 400,
        "ANALYSIS_FAILED": 502,
    }

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

    @property
    def status_code(self) -> int:
        return self.STATUS_MAP.get(self.code, 500)


async def read_upload(file: UploadFile) -> bytes:
    """업로드 파일 읽기 (형식/크기 검증)

    Raises:
        AnalyzeError(INVALID_IMAGE): 지원하지 않는 형식 또는 크기 초과
    """
    if file.content_type not in Limits.ALLOWED_IMAGE_TYPES:
        logger.info(f"지원하지 않는 업로드 형식: {file.content_type}")
        raise AnalyzeError("INVALID_IMAGE", Messages.INVALID_IMAGE)

    chunks: list[bytes] = []
    total_size = 0

    while chunk := await file.read(CHUNK_SIZE):
        total_size += len(chunk)
        if total_size > Limits.MAX_UPLOAD_SIZE:
            logger.info(f"업로드 크기 초과: {total_size}+ bytes")
            raise AnalyzeError("INVALID_IMAGE", Messages.INVALID_IMAGE)
        chunks.append(chunk)

    return b"".join(chunks)


def normalize_to_jpeg(content: bytes) -> bytes:
    """임의 이미지 → RGB JPEG

    Raises:
        AnalyzeError(INVALID_IMAGE): 디코딩 실패 또는 픽셀수 초과
    """
    try:
        with Image.open(io.BytesIO(content)) as image:
            width, height = image.size
            if width * height > Limits.MAX_PIXELS:
                logger.info(f"총 픽셀수 초과: {width}x{height}")
                raise AnalyzeError("INVALID_IMAGE", Messages.INVALID_IMAGE)
            rgb = image.convert("RGB")
    except AnalyzeError:
        raise
    except Exception as e:
        logger.info(f"이미지 디코딩 실패: {e}")
        raise AnalyzeError("INVALID_IMAGE", Messages.INVALID_IMAGE) from e

    buffer = io.BytesIO()
    rgb.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()


async def analyze_image(content: bytes, assistant: Assistant | None = None) -> TranslationResult:
    """이미지 번역 + 가격 변환

    Raises:
        AnalyzeError: 이미지 오류 또는 분석 실패 (원인은 로그로만 남김)
    """
    jpeg = await asyncio.to_thread(normalize_to_jpeg, content)
    assistant = assistant or get_assistant()

    try:
        return await assistant.request_image_analysis(jpeg, "image/jpeg")
    except AssistantError as e:
        logger.error(f"이미지 분석 실패: {e}", exc_info=True)
        raise AnalyzeError("ANALYSIS_FAILED", Messages.ANALYSIS_FAILED) from e
