"""
Pipeline controller: one video in, one AnalysisResult (or a failure) out.

    idle ──submit──▶ extracting ──frames──▶ analyzing ──reply──▶ idle
                         │                      │
                         └──────── error ───────┴──────────────▶ idle

Threading model
---------------
Decoding and the blocking HTTP call run in worker threads, but every write
to the controller's state happens on the event loop thread:
  - sampler progress is marshalled back with call_soon_threadsafe
  - the synthetic "analyzing" ticker is an asyncio task on the same loop
so there is exactly one writer and no lock is needed.

Each run carries a run_id. reset() and a new submit() both bump the current
id, so anything that arrives later from an older run (progress, reply,
failure) is recognised as stale and dropped instead of clobbering state.
"""

import asyncio
from typing import Callable, List, Optional

from sentinel.analysis.models import (
    AnalysisResult,
    ExtractedFrame,
    PipelineStage,
    PipelineState,
)
from sentinel.analysis.normalizer import normalize_reply
from sentinel.analysis.request_builder import build_analysis_request
from sentinel.core.config import Settings, get_settings
from sentinel.core.event_bus import (
    ANALYSIS_COMPLETED,
    ANALYSIS_FAILED,
    PIPELINE_STATE_CHANGED,
    EventBus,
    event_bus,
)
from sentinel.core.exceptions import AnalysisError, SamplingFailure
from sentinel.core.logging import get_logger
from sentinel.inference.factory import build_inference_client
from sentinel.vision.frame_sampler import FrameSampler, probe_duration


class PipelineController:

    def __init__(
        self,
        settings: Settings = None,
        client=None,
        sampler_factory: Callable[[str], FrameSampler] = None,
        duration_probe: Callable[[str], float] = None,
        bus: EventBus = None,
        on_state: Callable[[PipelineState], None] = None,
        on_result: Callable[[AnalysisResult], None] = None,
        on_failure: Callable[[str], None] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger()
        self.client = client or build_inference_client(self.settings)
        self.sampler_factory = sampler_factory or self._default_sampler
        self.duration_probe = duration_probe or probe_duration
        self.bus = bus or event_bus

        self.on_state = on_state
        self.on_result = on_result
        self.on_failure = on_failure

        self._state = PipelineState()
        self._run_id = 0
        self._frames: List[ExtractedFrame] = []
        self._result: Optional[AnalysisResult] = None
        self._last_failure: Optional[AnalysisError] = None

    def _default_sampler(self, video_path: str) -> FrameSampler:
        return FrameSampler(
            video_path,
            target_count=self.settings.frame_target_count,
            max_dim=self.settings.frame_max_dim,
            jpeg_quality=self.settings.frame_jpeg_quality,
        )

    # ── Read-only views ────────────────────────────────────────────────────────

    @property
    def state(self) -> PipelineState:
        return self._state.snapshot()

    @property
    def run_id(self) -> int:
        return self._run_id

    @property
    def frames(self) -> List[ExtractedFrame]:
        return list(self._frames)

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self._result

    @property
    def last_failure(self) -> Optional[AnalysisError]:
        return self._last_failure

    @property
    def last_error(self) -> Optional[str]:
        return self._last_failure.message if self._last_failure else None

    # ── Entry points ───────────────────────────────────────────────────────────

    def submit(self, video_path: str) -> asyncio.Task:
        """
        Start a run and return immediately. Must be called from inside the
        event loop. Progress arrives through the bus / on_state callback.
        """
        run_id = self._begin_run(video_path)
        return asyncio.ensure_future(self._settle(run_id, video_path))

    def reset(self):
        """Back to idle from anywhere. An in-flight run becomes stale."""
        self._run_id += 1
        self._frames = []
        self._result = None
        self._last_failure = None
        self.logger.info("pipeline_reset", run_id=self._run_id)
        self._set_state(PipelineStage.IDLE, 0)

    async def process_video(self, video_path: str) -> Optional[AnalysisResult]:
        """Run the whole pipeline. Returns None on failure or if superseded."""
        run_id = self._begin_run(video_path)
        return await self._settle(run_id, video_path)

    async def _settle(self, run_id: int, video_path: str) -> Optional[AnalysisResult]:
        try:
            return await self._run(run_id, video_path)
        except AnalysisError as e:
            self._fail(run_id, e)
            return None
        except Exception as e:
            self.logger.exception("pipeline_unexpected_error", run_id=run_id, error=str(e))
            self._fail(run_id, AnalysisError())
            return None
        finally:
            if self._is_current(run_id):
                self._set_state(PipelineStage.IDLE, 0)

    # ── Run body ───────────────────────────────────────────────────────────────

    async def _run(self, run_id: int, video_path: str) -> Optional[AnalysisResult]:
        loop = asyncio.get_running_loop()

        def on_progress(percent: int):
            # Called from the decoder thread
            loop.call_soon_threadsafe(
                self._apply_progress, run_id, PipelineStage.EXTRACTING, percent
            )

        sampler = self.sampler_factory(video_path)
        frames = await asyncio.to_thread(sampler.sample, on_progress)
        if not self._is_current(run_id):
            return self._discard(run_id, "sampling")

        if not frames:
            raise SamplingFailure()
        self._frames = list(frames)

        duration = await asyncio.to_thread(self.duration_probe, video_path)
        if not self._is_current(run_id):
            return self._discard(run_id, "duration_probe")

        request = build_analysis_request(frames, duration)

        self._set_state(PipelineStage.ANALYZING, 0)

        stop = asyncio.Event()
        ticker = asyncio.create_task(self._tick_progress(run_id, stop))
        try:
            reply = await asyncio.to_thread(self.client.analyze, request)
        finally:
            stop.set()
            ticker.cancel()

        if not self._is_current(run_id):
            return self._discard(run_id, "reply")

        result = normalize_reply(reply, duration)
        self._apply_progress(run_id, PipelineStage.ANALYZING, 100)
        self._result = result

        self.logger.info(
            "analysis_completed",
            run_id=run_id,
            bad_event=result.bad_event,
            event_type=result.event_type,
            confidence=result.confidence,
        )
        self.bus.publish(ANALYSIS_COMPLETED, {"run_id": run_id, "result": result})
        if self.on_result is not None:
            self.on_result(result)
        return result

    async def _tick_progress(self, run_id: int, stop: asyncio.Event):
        """Synthetic progress while the real completion time is unknown."""
        step = self.settings.progress_tick_step
        cap = self.settings.progress_tick_cap
        interval = self.settings.progress_tick_interval_seconds

        while not stop.is_set():
            await asyncio.sleep(interval)
            if stop.is_set():
                return
            current = self._state.progress
            self._apply_progress(run_id, PipelineStage.ANALYZING, min(current + step, cap))

    # ── State helpers (event loop thread only) ─────────────────────────────────

    def _begin_run(self, video_path: str) -> int:
        self._run_id += 1
        self._frames = []
        self._result = None
        self._last_failure = None
        self.logger.info("pipeline_run_started", run_id=self._run_id, path=video_path)
        self._set_state(PipelineStage.EXTRACTING, 0)
        return self._run_id

    def _is_current(self, run_id: int) -> bool:
        return run_id == self._run_id

    def _apply_progress(self, run_id: int, stage: PipelineStage, percent: int):
        if not self._is_current(run_id) or self._state.stage != stage:
            return
        percent = max(0, min(100, int(percent)))
        # Never move backwards within a stage
        if percent <= self._state.progress:
            return
        self._set_state(stage, percent)

    def _set_state(self, stage: PipelineStage, progress: int):
        changed_stage = stage != self._state.stage
        self._state = PipelineState(stage=stage, progress=progress)

        if changed_stage:
            self.logger.info("pipeline_stage_changed", run_id=self._run_id, stage=stage.value)

        snapshot = self._state.snapshot()
        self.bus.publish(
            PIPELINE_STATE_CHANGED,
            {"run_id": self._run_id, "stage": stage.value, "progress": progress},
        )
        if self.on_state is not None:
            self.on_state(snapshot)

    def _fail(self, run_id: int, error: AnalysisError):
        if not self._is_current(run_id):
            self._discard(run_id, "failure")
            return

        self._result = None
        self._last_failure = error
        self.logger.error(
            "analysis_failed",
            run_id=run_id,
            error_type=type(error).__name__,
            message=error.message,
        )
        self.bus.publish(
            ANALYSIS_FAILED,
            {"run_id": run_id, "message": error.message, "error_type": type(error).__name__},
        )
        if self.on_failure is not None:
            self.on_failure(error.message)

    def _discard(self, run_id: int, at: str) -> None:
        self.logger.warning(
            "stale_run_discarded",
            run_id=run_id,
            current_run_id=self._run_id,
            at=at,
        )
        return None
