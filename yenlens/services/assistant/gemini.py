"""Gemini 기반 Assistant 구현체"""

# pyright: reportMissingTypeStubs=false

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from google import genai
from google.genai import types
from pydantic import ValidationError

from yenlens.schemas.conversion import TranslationResult
from yenlens.services.assistant.base import (
    AssistantError,
    AssistantTimeoutError,
    InvalidResponseFormatError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TEXT_CONVERSION_PROMPT = (
    "Convert {amount} JPY to EUR. Use the exchange rate 1 EUR = {rate} JPY. "
    "Respond with ONLY the numerical value, without currency symbols or any other text. "
    "For example, if the result is 123.45, respond with '123.45'."
)

IMAGE_ANALYSIS_PROMPT = (
    "Analyze the image. Identify all Japanese text and translate it to Spanish. "
    "Also, find all prices listed in Japanese Yen (¥ or 円) and convert them to Euros (EUR). "
    "Use an exchange rate of 1 EUR = {rate} JPY. "
    "Format your response according to the provided JSON schema. "
    "If no text or prices are found, return an empty translation and an empty array "
    "for conversions."
)

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant specialized in translating Japanese text to Spanish "
    "and converting JPY to EUR from images."
)

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "translatedText": types.Schema(
            type=types.Type.STRING,
            description="The complete translation of all Japanese text in the image into Spanish.",
        ),
        "conversions": types.Schema(
            type=types.Type.ARRAY,
            description="A list of all detected prices and their conversion from JPY to EUR.",
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "originalAmountText": types.Schema(
                        type=types.Type.STRING,
                        description="The original price string detected in Japanese Yen "
                        "(e.g., '1500円').",
                    ),
                    "convertedEuros": types.Schema(
                        type=types.Type.NUMBER,
                        description="The converted amount in Euros.",
                    ),
                },
                required=["originalAmountText", "convertedEuros"],
            ),
        ),
    },
    required=["translatedText", "conversions"],
)


def _format_number(value: float) -> str:
    """프롬프트용 숫자 표기 (170.0 → "170")"""
    return str(int(value)) if float(value).is_integer() else str(value)


class GeminiAssistant:
    """Google Gemini API를 사용한 환율 변환/이미지 분석

    재시도 없음. 모든 호출은 timeout으로 제한되며, 초과 시 진행 중인 요청은 취소된다.
    """

    def __init__(self, api_key: str, model: str, jpy_per_eur: float, timeout: float) -> None:
        self._api_key = api_key
        self._model = model
        self._jpy_per_eur = jpy_per_eur
        self._timeout = timeout

    async def request_text_conversion(self, amount_jpy: float) -> str:
        """Raises:
        AssistantError: API 호출 실패, 빈 응답, timeout
        """
        prompt = TEXT_CONVERSION_PROMPT.format(
            amount=_format_number(amount_jpy),
            rate=_format_number(self._jpy_per_eur),
        )
        client = self._create_client()

        response = await self._call(
            client.aio.models.generate_content(model=self._model, contents=prompt)
        )

        if not response.text:
            raise AssistantError("빈 응답")

        return response.text.strip()

    async def request_image_analysis(
        self, image_bytes: bytes, mime_type: str = "image/jpeg"
    ) -> TranslationResult:
        """Raises:
        InvalidResponseFormatError: JSON 파싱 실패 또는 스키마 불일치
        AssistantError: API 호출 실패, 빈 응답, timeout
        """
        prompt = IMAGE_ANALYSIS_PROMPT.format(rate=_format_number(self._jpy_per_eur))
        image_part = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)
        client = self._create_client()

        response = await self._call(
            client.aio.models.generate_content(
                model=self._model,
                contents=[prompt, image_part],
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_INSTRUCTION,
                    response_mime_type="application/json",
                    response_schema=RESPONSE_SCHEMA,
                ),
            )
        )

        if not response.text:
            raise AssistantError("빈 응답")

        return self._parse_analysis(response.text.strip())

    def _create_client(self) -> genai.Client:
        if not self._api_key:
            raise AssistantError("GEMINI_API_KEY가 설정되지 않았습니다")
        return genai.Client(api_key=self._api_key)

    async def _call(self, request: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(request, timeout=self._timeout)
        except TimeoutError as e:
            raise AssistantTimeoutError(f"Gemini API 응답 시간 초과 ({self._timeout}s)") from e
        except Exception as e:
            raise AssistantError(f"Gemini API 호출 실패: {e}") from e

    def _parse_analysis(self, raw_text: str) -> TranslationResult:
        try:
            return TranslationResult.model_validate_json(raw_text)
        except ValidationError as e:
            logger.error(f"분석 응답 검증 실패: {raw_text!r} - {e}")
            raise InvalidResponseFormatError(raw_text) from e
