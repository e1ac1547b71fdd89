"""Assistant Protocol

환율 변환과 이미지 분석을 외부 생성형 AI 서비스에 위임하는 인터페이스 정의.
Manual Converter와 Camera Capture가 공유하는 유일한 의존성.
"""

from typing import Protocol

from yenlens.schemas.conversion import TranslationResult


class AssistantError(Exception):
    """외부 서비스 호출 실패 (네트워크, API 오류, 빈 응답 등)"""


class AssistantTimeoutError(AssistantError):
    pass


class InvalidResponseFormatError(AssistantError):
    """응답이 선언한 스키마와 일치하지 않음"""

    def __init__(self, raw_text: str | None = None) -> None:
        self.raw_text = raw_text
        super().__init__("The API returned an invalid response format.")


class Assistant(Protocol):
    """외부 AI 서비스 인터페이스

    구현체:
    - GeminiAssistant: Google Gemini API
    """

    async def request_text_conversion(self, amount_jpy: float) -> str:
        """JPY → EUR 변환 요청

        Returns:
            숫자만 담긴 응답 문자열 (파싱은 호출자 책임)

        Raises:
            AssistantError: 호출 실패 시
        """
        ...

    async def request_image_analysis(
        self, image_bytes: bytes, mime_type: str = "image/jpeg"
    ) -> TranslationResult:
        """이미지의 일본어 텍스트 번역 + 엔화 가격 변환 요청

        Raises:
            InvalidResponseFormatError: 응답 스키마 불일치
            AssistantError: 호출 실패 시
        """
        ...
