import tempfile
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    service_name: str = Field("sentinel", alias="SERVICE_NAME")

    # ── Inference backend ─────────────────────────────────────────────────────

    # "http":   POST the frames to a hosted analysis function
    # "ollama": talk to a local vision model directly
    analysis_backend: Literal["http", "ollama"] = Field("http", alias="ANALYSIS_BACKEND")

    analysis_endpoint_url: str = Field(
        "http://localhost:54321/functions/v1/analyze-video",
        alias="ANALYSIS_ENDPOINT_URL",
    )
    analysis_api_key: Optional[str] = Field(None, alias="ANALYSIS_API_KEY")

    # Unset = no client-side timeout, the transport decides
    analysis_timeout_seconds: Optional[float] = Field(
        None, gt=0, alias="ANALYSIS_TIMEOUT_SECONDS"
    )

    ollama_host: str = Field("http://localhost:11434", alias="OLLAMA_HOST")
    multimodal_model: str = Field("llava", alias="MULTIMODAL_MODEL")
    analysis_max_tokens: int = Field(512, gt=0, alias="ANALYSIS_MAX_TOKENS")

    # ── Frame sampling ────────────────────────────────────────────────────────

    frame_target_count: int = Field(16, gt=0, alias="FRAME_TARGET_COUNT")

    # Longest side of each still sent upstream; bounds the request payload
    frame_max_dim: int = Field(512, gt=0, alias="FRAME_MAX_DIM")
    frame_jpeg_quality: int = Field(80, ge=1, le=100, alias="FRAME_JPEG_QUALITY")

    # ── Synthetic progress while the model is thinking ────────────────────────

    progress_tick_step: int = Field(2, gt=0, alias="PROGRESS_TICK_STEP")
    progress_tick_interval_seconds: float = Field(
        0.5, gt=0, alias="PROGRESS_TICK_INTERVAL_SECONDS"
    )
    progress_tick_cap: int = Field(90, ge=0, lt=100, alias="PROGRESS_TICK_CAP")

    # ── Paths ─────────────────────────────────────────────────────────────────

    upload_dir: str = Field(tempfile.gettempdir(), alias="UPLOAD_DIR")

    class Config:
        env_file = ".env"
        case_sensitive = True
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
