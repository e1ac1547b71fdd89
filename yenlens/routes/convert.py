from fastapi import APIRouter, HTTPException, status

from yenlens.services import converter as converter_service

router = APIRouter(prefix="/convert", tags=["convert"])


@router.post("", response_model=converter_service.ConversionResponse)
async def convert(
    request: converter_service.ConversionRequest,
) -> converter_service.ConversionResponse:
    """JPY → EUR 변환 (서비스 실패 시 고정 환율 fallback)"""
    try:
        amount = converter_service.parse_amount(request.amount_jpy)
    except converter_service.AmountValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": e.code, "message": e.message},
        ) from None

    outcome = await converter_service.convert(amount)
    return converter_service.to_response(outcome)
