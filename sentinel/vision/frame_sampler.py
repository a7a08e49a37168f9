import base64
from typing import Callable, List, Optional

import cv2

from sentinel.analysis.models import ExtractedFrame
from sentinel.core.logging import get_logger

ProgressCallback = Callable[[int], None]


def probe_duration(video_path: str) -> float:
    """
    Duration in seconds from container metadata.
    Returns 0.0 when the file can't be opened or reports no fps/frames.
    """
    cap = cv2.VideoCapture(video_path)
    try:
        if not cap.isOpened():
            return 0.0
        return _duration_of(cap)
    finally:
        cap.release()


def _duration_of(cap) -> float:
    fps = cap.get(cv2.CAP_PROP_FPS)
    frame_count = cap.get(cv2.CAP_PROP_FRAME_COUNT)
    if not fps or fps <= 0 or not frame_count or frame_count <= 0:
        return 0.0
    return float(frame_count) / float(fps)


def sample_instants(duration: float, target_count: int) -> List[float]:
    """Evenly spaced instants across [0, duration): i * D / N."""
    if duration <= 0 or target_count <= 0:
        return []
    step = duration / target_count
    return [i * step for i in range(target_count)]


class FrameSampler:
    """
    Pulls a bounded, evenly spread set of stills out of one video.

    The video is never decoded end to end: the capture seeks straight to
    each of the N sample instants and grabs whatever frame is showing there.
    Instants that fail to decode are skipped, so the result can hold fewer
    than N frames. An empty result means nothing usable was found; the
    caller decides that this is fatal.
    """

    def __init__(
        self,
        video_path: str,
        target_count: int = 16,
        max_dim: int = 512,
        jpeg_quality: int = 80,
    ):
        if target_count <= 0:
            raise ValueError("target_count must be greater than 0")

        self.video_path = video_path
        self.target_count = target_count
        self.max_dim = max_dim
        self.jpeg_quality = jpeg_quality
        self.logger = get_logger()

    def sample(self, on_progress: Optional[ProgressCallback] = None) -> List[ExtractedFrame]:
        cap = cv2.VideoCapture(self.video_path)
        try:
            if not cap.isOpened():
                self.logger.warning("video_open_failed", path=self.video_path)
                return []
            return self._sample_from(cap, on_progress)
        finally:
            cap.release()

    def _sample_from(self, cap, on_progress: Optional[ProgressCallback]) -> List[ExtractedFrame]:
        duration = _duration_of(cap)
        fps = cap.get(cv2.CAP_PROP_FPS)
        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))

        self.logger.info(
            "frame_sampling_started",
            path=self.video_path,
            duration=duration,
            fps=fps,
            target_count=self.target_count,
        )

        frames: List[ExtractedFrame] = []
        seen_indices = set()
        instants = sample_instants(duration, self.target_count)

        for i, instant in enumerate(instants):
            frame_index = min(int(instant * fps), frame_count - 1)

            # Short clips: several instants land on the same frame
            if frame_index in seen_indices:
                continue
            seen_indices.add(frame_index)

            cap.set(cv2.CAP_PROP_POS_FRAMES, frame_index)
            ret, frame = cap.read()
            if not ret or frame is None:
                self.logger.warning(
                    "frame_decode_skipped",
                    path=self.video_path,
                    second=instant,
                    frame_index=frame_index,
                )
                continue

            image = self._encode_frame(frame)
            if image is None:
                self.logger.warning("frame_encode_skipped", path=self.video_path, second=instant)
                continue

            frames.append(ExtractedFrame(image=image, timestamp_seconds=instant))

            if on_progress is not None:
                on_progress(min(100, round((i + 1) * 100 / self.target_count)))

        self.logger.info(
            "frame_sampling_completed",
            path=self.video_path,
            extracted=len(frames),
            requested=self.target_count,
        )
        return frames

    def _encode_frame(self, frame) -> Optional[str]:
        # Longest side capped at max_dim, never upscaled
        h, w = frame.shape[:2]
        if max(h, w) > self.max_dim:
            scale = self.max_dim / max(h, w)
            frame = cv2.resize(
                frame,
                (max(1, int(w * scale)), max(1, int(h * scale))),
                interpolation=cv2.INTER_AREA,
            )
        ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            return None
        return "data:image/jpeg;base64," + base64.b64encode(buffer).decode("utf-8")
