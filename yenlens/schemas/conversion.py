"""환율 변환/이미지 분석 데이터 모델

Manual Converter, Camera Capture, Assistant 전체에서 사용하는 공통 스키마
"""

from pydantic import ConfigDict

from yenlens.schemas.base import BaseSchema


class ConversionEntry(BaseSchema):
    """이미지에서 감지된 가격 1건 ("1500円" → 8.82)"""

    model_config = ConfigDict(frozen=True)

    original_amount_text: str
    converted_euros: float


class TranslationResult(BaseSchema):
    """이미지 분석 결과 (번역 + 가격 변환 목록)

    두 필드 모두 필수. 하나라도 없으면 검증 실패 (부분 결과 반환 금지).
    """

    model_config = ConfigDict(frozen=True)

    translated_text: str
    conversions: tuple[ConversionEntry, ...]
