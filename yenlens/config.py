from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class StartupConfigError(Exception):
    """필수 설정 누락 (앱 기동 불가)"""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # App
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # Gemini API (필수)
    gemini_api_key: str
    gemini_model: str = "gemini-2.5-flash"

    # Assistant
    assistant_provider: str = "gemini"  # "gemini"
    assistant_timeout: float = Field(30.0, gt=0)  # 초

    # 환율: 1 EUR = N JPY
    jpy_per_eur: float = Field(170.0, gt=0)

    # Camera
    camera_provider: str = "opencv"  # "opencv"
    camera_environment_index: int | None = 0  # 후면 카메라 장치 인덱스
    camera_user_index: int | None = None  # 전면 카메라 장치 인덱스
    camera_jpeg_quality: int = Field(90, ge=1, le=100)
    camera_warmup_frames: int = Field(5, ge=1)


def load_settings() -> Settings:
    """설정 로드

    Raises:
        StartupConfigError: GEMINI_API_KEY 누락 등 필수 설정 검증 실패
    """
    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValidationError as e:
        raise StartupConfigError(f"설정 검증 실패: {e}") from e

    if not settings.gemini_api_key.strip():
        raise StartupConfigError("GEMINI_API_KEY가 설정되지 않았습니다")

    return settings


@lru_cache
def get_settings() -> Settings:
    return load_settings()
