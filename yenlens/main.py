import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from yenlens.config import get_settings
from yenlens.routes.analyze import router as analyze_router
from yenlens.routes.camera import router as camera_router
from yenlens.routes.convert import router as convert_router
from yenlens.services.capture import close_capture_controller

# GEMINI_API_KEY 누락 시 StartupConfigError로 기동 실패
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=settings.log_level.upper())
    yield
    close_capture_controller()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
    max_age=600,
)

app.include_router(convert_router)
app.include_router(analyze_router)
app.include_router(camera_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
