"""Manual Converter: JPY → EUR 수동 변환

Assistant에 변환을 요청하고, 실패하면 고정 환율로 로컬 계산한다.
fallback은 오류 상태가 아니라 외부 서비스 장애 시의 정해진 대체 경로.
"""

import logging
import math
from typing import Any

from yenlens.config import get_settings
from yenlens.constants import Messages
from yenlens.schemas.base import BaseSchema
from yenlens.services.assistant import Assistant, AssistantError, get_assistant

logger = logging.getLogger(__name__)


class AmountValidationError(Exception):
    def __init__(self, raw: object) -> None:
        self.raw = raw
        self.code = "INVALID_AMOUNT"
        self.message = Messages.INVALID_AMOUNT
        super().__init__(f"유효하지 않은 금액: {raw!r}")


class ConversionRequest(BaseSchema):
    # 형식 검증은 parse_amount에서 (bool/null/누락 포함 모두 INVALID_AMOUNT)
    amount_jpy: Any = None


class ConversionOutcome(BaseSchema):
    amount_jpy: float
    amount_eur: float
    rate: float
    fallback: bool = False

    @property
    def display(self) -> str:
        return format_euros(self.amount_eur)


class ConversionResponse(BaseSchema):
    amount_jpy: float
    amount_eur: float
    display: str
    rate: float
    fallback: bool


def format_euros(amount_eur: float) -> str:
    """표시용 소수점 2자리 (1000/170 → "5.88")"""
    return f"{amount_eur:.2f}"


def parse_amount(raw: object) -> float:
    """사용자 입력 금액 파싱

    Raises:
        AmountValidationError: 숫자가 아니거나, NaN/Inf, 0 이하
    """
    if isinstance(raw, bool) or not isinstance(raw, str | int | float):
        raise AmountValidationError(raw)

    try:
        amount = float(raw.strip() if isinstance(raw, str) else raw)
    except (OverflowError, ValueError):
        raise AmountValidationError(raw) from None

    if not math.isfinite(amount) or amount <= 0:
        raise AmountValidationError(raw)

    return amount


def _parse_service_amount(text: str) -> float | None:
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _fallback(amount: float, rate: float) -> ConversionOutcome:
    return ConversionOutcome(amount_jpy=amount, amount_eur=amount / rate, rate=rate, fallback=True)


async def convert(amount_jpy: float, assistant: Assistant | None = None) -> ConversionOutcome:
    """JPY → EUR 변환 (요청 1회, 캐시/재시도 없음)

    Raises:
        AmountValidationError: 유효하지 않은 금액 (요청하지 않음)
    """
    amount = parse_amount(amount_jpy)
    rate = get_settings().jpy_per_eur
    assistant = assistant or get_assistant()

    try:
        text = await assistant.request_text_conversion(amount)
    except AssistantError as e:
        logger.warning(f"환율 변환 요청 실패, 고정 환율로 계산: {e}")
        return _fallback(amount, rate)

    value = _parse_service_amount(text)
    if value is None:
        logger.warning(f"환율 변환 응답 파싱 실패, 고정 환율로 계산: {text!r}")
        return _fallback(amount, rate)

    return ConversionOutcome(amount_jpy=amount, amount_eur=value, rate=rate)


def to_response(outcome: ConversionOutcome) -> ConversionResponse:
    return ConversionResponse(
        amount_jpy=outcome.amount_jpy,
        amount_eur=outcome.amount_eur,
        display=outcome.display,
        rate=outcome.rate,
        fallback=outcome.fallback,
    )
