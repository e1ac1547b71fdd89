"""Analyze API 라우트

클라이언트에서 캡처한 이미지를 번역 + 가격 변환하는 엔드포인트.
"""

from typing import Annotated

from fastapi import APIRouter, File, HTTPException, UploadFile

from yenlens.schemas.conversion import TranslationResult
from yenlens.services import analyze as analyze_service

router = APIRouter(prefix="/analyze", tags=["analyze"])


@router.post("", response_model=TranslationResult)
async def analyze(file: Annotated[UploadFile, File()]) -> TranslationResult:
    try:
        content = await analyze_service.read_upload(file)
        return await analyze_service.analyze_image(content)
    except analyze_service.AnalyzeError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"code": e.code, "message": e.message},
        ) from None
