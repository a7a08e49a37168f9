from typing import Sequence

from sentinel.analysis.models import AnalysisRequest, ExtractedFrame
from sentinel.core.exceptions import SamplingFailure


def build_analysis_request(frames: Sequence[ExtractedFrame], duration_seconds: float) -> AnalysisRequest:
    """Package sampled frames + the source duration. Pure, no I/O."""
    if not frames:
        raise SamplingFailure()

    return AnalysisRequest(
        frames=tuple(f.image for f in frames),
        timestamps=tuple(f.timestamp_seconds for f in frames),
        duration_seconds=float(duration_seconds),
    )
