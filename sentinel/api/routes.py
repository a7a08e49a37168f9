import asyncio
import os
import shutil
import tempfile

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel
from typing import Optional

from sentinel.core.config import get_settings
from sentinel.core.exceptions import SamplingFailure
from sentinel.core.logging import get_logger
from sentinel.pipeline.controller import PipelineController

router = APIRouter()
logger = get_logger()


def get_controller(request: Request) -> PipelineController:
    return request.app.state.controller


# ── Schemas ────────────────────────────────────────────────────────────────────

class AnalysisResponse(BaseModel):
    summary: str
    badEvent: bool
    reason: str
    confidence: float
    anomalyStart: Optional[float]
    anomalyEnd: Optional[float]
    eventType: str
    severityScore: Optional[float]
    duration: float


class StateResponse(BaseModel):
    stage: str
    progress: int
    run_id: int
    has_result: bool
    frame_count: int
    last_error: Optional[str]


def _state_response(controller: PipelineController) -> StateResponse:
    state = controller.state
    return StateResponse(
        stage=state.stage.value,
        progress=state.progress,
        run_id=controller.run_id,
        has_result=controller.result is not None,
        frame_count=len(controller.frames),
        last_error=controller.last_error,
    )


def _spool_upload(source, directory: str, suffix: str) -> str:
    """Copy an upload to a named file on disk. Blocking; no file is left on failure."""
    os.makedirs(directory, exist_ok=True)
    with tempfile.NamedTemporaryFile(dir=directory, suffix=suffix, delete=False) as spool:
        try:
            shutil.copyfileobj(source, spool)
        except Exception:
            spool.close()
            os.remove(spool.name)
            raise
        return spool.name


# ── Health ─────────────────────────────────────────────────────────────────────

@router.get("/health")
def health():
    return {"status": "ok"}


# ── Analysis ───────────────────────────────────────────────────────────────────

@router.post("/analyze", response_model=AnalysisResponse)
async def analyze(request: Request, file: UploadFile = File(...)):
    controller = get_controller(request)
    settings = get_settings()

    suffix = os.path.splitext(file.filename or "")[1] or ".mp4"
    # Off the loop: the ticker and every controller write run there
    video_path = await asyncio.to_thread(
        _spool_upload, file.file, settings.upload_dir, suffix
    )

    logger.info("video_upload_received", filename=file.filename, path=video_path)

    try:
        result = await controller.process_video(video_path)
    finally:
        os.remove(video_path)

    if result is None:
        failure = controller.last_failure
        if failure is None:
            raise HTTPException(status_code=409, detail="Run was reset before it finished.")
        status = 422 if isinstance(failure, SamplingFailure) else 502
        raise HTTPException(status_code=status, detail=failure.message)

    return AnalysisResponse(**result.to_dict())


@router.get("/result", response_model=AnalysisResponse)
def get_result(request: Request):
    result = get_controller(request).result
    if result is None:
        raise HTTPException(status_code=404, detail="No analysis result available.")
    return AnalysisResponse(**result.to_dict())


# ── Pipeline state ─────────────────────────────────────────────────────────────

@router.get("/state", response_model=StateResponse)
def get_state(request: Request):
    return _state_response(get_controller(request))


@router.post("/reset", response_model=StateResponse)
async def reset(request: Request):
    # Runs on the event loop thread, the only writer of controller state
    controller = get_controller(request)
    controller.reset()
    return _state_response(controller)
