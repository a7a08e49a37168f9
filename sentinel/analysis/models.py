"""
Typed records that flow through the pipeline.

    ExtractedFrame: one still pulled from the video (sampler output)
    AnalysisRequest: what is sent to the analysis service
    AnalysisResult: the canonical, consumer-facing verdict
    PipelineState: stage + progress snapshot owned by the controller

Frames and results are frozen: once built they are only ever replaced.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


# ── Sampler output ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ExtractedFrame:
    # Self-describing raster, e.g. "data:image/jpeg;base64,/9j/..."
    image: str
    timestamp_seconds: float


# ── Request ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnalysisRequest:
    frames: Tuple[str, ...]
    timestamps: Tuple[float, ...]
    duration_seconds: float

    def __post_init__(self):
        if not self.frames:
            raise ValueError("AnalysisRequest needs at least one frame")
        if len(self.frames) != len(self.timestamps):
            raise ValueError(
                f"frames/timestamps length mismatch: "
                f"{len(self.frames)} != {len(self.timestamps)}"
            )

    def to_payload(self) -> dict:
        """Wire body expected by the analysis function."""
        return {
            "frames": list(self.frames),
            "timestamps": list(self.timestamps),
            "duration": self.duration_seconds,
        }


# ── Result ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AnalysisResult:
    duration_seconds: float
    summary: str = "Unable to analyze."
    bad_event: bool = False
    reason: str = ""
    confidence: float = 0.5
    anomaly_start: Optional[float] = None
    anomaly_end: Optional[float] = None
    event_type: str = "none"
    severity_score: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "badEvent": self.bad_event,
            "reason": self.reason,
            "confidence": self.confidence,
            "anomalyStart": self.anomaly_start,
            "anomalyEnd": self.anomaly_end,
            "eventType": self.event_type,
            "severityScore": self.severity_score,
            "duration": self.duration_seconds,
        }


# ── Controller state ───────────────────────────────────────────────────────────

class PipelineStage(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    ANALYZING = "analyzing"


@dataclass
class PipelineState:
    stage: PipelineStage = PipelineStage.IDLE
    progress: int = 0

    def snapshot(self) -> "PipelineState":
        return PipelineState(stage=self.stage, progress=self.progress)

    def to_dict(self) -> dict:
        return {"stage": self.stage.value, "progress": self.progress}

