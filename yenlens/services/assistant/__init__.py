"""Assistant 모듈

사용법:
    from yenlens.services.assistant import get_assistant

    assistant = get_assistant()
    text = await assistant.request_text_conversion(1000)
    result = await assistant.request_image_analysis(jpeg_bytes)

백엔드 선택 (.env ASSISTANT_PROVIDER):
    - "gemini": Google Gemini API (기본값)
"""

from yenlens.config import get_settings
from yenlens.services.assistant.base import (
    Assistant,
    AssistantError,
    AssistantTimeoutError,
    InvalidResponseFormatError,
)
from yenlens.services.assistant.gemini import GeminiAssistant

__all__ = [
    "Assistant",
    "AssistantError",
    "AssistantTimeoutError",
    "InvalidResponseFormatError",
    "get_assistant",
    "set_assistant",
]

_assistant: Assistant | None = None


def get_assistant() -> Assistant:
    """설정에 따라 assistant 백엔드 반환"""
    global _assistant
    if _assistant is None:
        settings = get_settings()
        if settings.assistant_provider == "gemini":
            _assistant = GeminiAssistant(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                jpy_per_eur=settings.jpy_per_eur,
                timeout=settings.assistant_timeout,
            )
        else:
            raise ValueError(f"Unknown assistant provider: {settings.assistant_provider!r}")
    return _assistant


def set_assistant(assistant: Assistant | None) -> None:
    """assistant 백엔드 설정 (테스트용)"""
    global _assistant
    _assistant = assistant
