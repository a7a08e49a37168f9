import base64

import cv2
import numpy as np
import pytest

from sentinel.analysis.models import ExtractedFrame
from sentinel.core.config import Settings
from sentinel.core.event_bus import EventBus


@pytest.fixture
def settings():
    """Fast ticker so analyzing-stage tests don't wait half a second per step."""
    return Settings(
        ANALYSIS_ENDPOINT_URL="http://analysis.test/functions/v1/analyze-video",
        PROGRESS_TICK_INTERVAL_SECONDS=0.01,
        PROGRESS_TICK_STEP=2,
        PROGRESS_TICK_CAP=90,
    )


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def make_frames():
    def _make(timestamps):
        return [
            ExtractedFrame(image=f"data:image/jpeg;base64,frame{i}", timestamp_seconds=t)
            for i, t in enumerate(timestamps)
        ]
    return _make


@pytest.fixture
def tiny_video(tmp_path):
    """3-second 10 fps MJPG clip whose brightness changes every frame."""
    path = str(tmp_path / "clip.avi")
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    for i in range(30):
        writer.write(np.full((48, 64, 3), i * 8, dtype=np.uint8))
    writer.release()
    return path


@pytest.fixture
def decode_image():
    def _decode(image: str) -> np.ndarray:
        header, encoded = image.split(",", 1)
        assert header == "data:image/jpeg;base64"
        buffer = np.frombuffer(base64.b64decode(encoded), dtype=np.uint8)
        return cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    return _decode
