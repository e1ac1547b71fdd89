import os
from collections.abc import Callable, Generator
from io import BytesIO

os.environ.setdefault("GEMINI_API_KEY", "test-key")

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from yenlens.main import app
from yenlens.schemas.conversion import ConversionEntry, TranslationResult
from yenlens.services.assistant import set_assistant
from yenlens.services.camera import set_camera
from yenlens.services.capture import CaptureController, CaptureState, set_capture_controller

SAMPLE_RESULT = TranslationResult(
    translated_text="Ramen de cerdo 1500円",
    conversions=(ConversionEntry(original_amount_text="1500円", converted_euros=8.82),),
)


def make_test_image(width: int = 640, height: int = 480, fmt: str = "JPEG") -> BytesIO:
    """테스트용 실제 이미지 바이트 생성"""
    img = Image.new("RGB", (width, height), color="red")
    buf = BytesIO()
    img.save(buf, format=fmt)
    buf.seek(0)
    return buf


class FakeAssistant:
    """호출 기록 + 고정 응답 assistant"""

    def __init__(
        self,
        text: str = "5.88",
        result: TranslationResult = SAMPLE_RESULT,
        error: Exception | None = None,
        on_image_call: Callable[[], None] | None = None,
    ) -> None:
        self.text = text
        self.result = result
        self.error = error
        self.on_image_call = on_image_call
        self.text_calls: list[float] = []
        self.image_calls: list[bytes] = []

    async def request_text_conversion(self, amount_jpy: float) -> str:
        self.text_calls.append(amount_jpy)
        if self.error is not None:
            raise self.error
        return self.text

    async def request_image_analysis(
        self, image_bytes: bytes, mime_type: str = "image/jpeg"
    ) -> TranslationResult:
        self.image_calls.append(image_bytes)
        if self.on_image_call is not None:
            self.on_image_call()
        if self.error is not None:
            raise self.error
        return self.result


class FakeSession:
    def __init__(
        self,
        frame: bytes = b"\xff\xd8fake-jpeg",
        playing_error: Exception | None = None,
        capture_error: Exception | None = None,
    ) -> None:
        self.frame = frame
        self.playing_error = playing_error
        self.capture_error = capture_error
        self.release_count = 0
        self.capture_count = 0

    @property
    def released(self) -> bool:
        return self.release_count > 0

    async def wait_until_playing(self) -> None:
        if self.playing_error is not None:
            raise self.playing_error

    async def read_preview_jpeg(self) -> bytes:
        return self.frame

    async def capture_jpeg(self) -> bytes:
        self.capture_count += 1
        if self.capture_error is not None:
            raise self.capture_error
        return self.frame

    def release(self) -> None:
        self.release_count += 1


class FakeCamera:
    def __init__(
        self,
        error: Exception | None = None,
        playing_error: Exception | None = None,
        capture_error: Exception | None = None,
    ) -> None:
        self.error = error
        self.playing_error = playing_error
        self.capture_error = capture_error
        self.facings: list[str] = []
        self.sessions: list[FakeSession] = []

    async def open(self, facing: str) -> FakeSession:
        self.facings.append(facing)
        if self.error is not None:
            raise self.error
        session = FakeSession(
            playing_error=self.playing_error, capture_error=self.capture_error
        )
        self.sessions.append(session)
        return session


@pytest.fixture
def fake_assistant() -> Generator[FakeAssistant, None, None]:
    assistant = FakeAssistant()
    set_assistant(assistant)
    yield assistant
    set_assistant(None)


@pytest.fixture
def fake_camera() -> Generator[FakeCamera, None, None]:
    camera = FakeCamera()
    set_camera(camera)
    yield camera
    set_camera(None)


@pytest.fixture
def transitions() -> list[CaptureState]:
    return []


@pytest.fixture
def controller(
    fake_camera: FakeCamera,
    fake_assistant: FakeAssistant,
    transitions: list[CaptureState],
) -> Generator[CaptureController, None, None]:
    instance = CaptureController(
        camera=fake_camera, assistant=fake_assistant, listener=transitions.append
    )
    set_capture_controller(instance)
    yield instance
    instance.close()
    set_capture_controller(None)


@pytest.fixture
def client(
    fake_assistant: FakeAssistant, controller: CaptureController
) -> Generator[TestClient, None, None]:
    yield TestClient(app)
