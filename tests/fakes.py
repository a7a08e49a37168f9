"""Test doubles for the sampler and the inference client."""

import time


ROBBERY_REPLY = {
    "summary": "Robbery detected",
    "bad_event": "Yes",
    "confidence": 0.87,
    "severity_score": 8.5,
    "anomaly_start": 134,
    "anomaly_end": 149,
    "event_type": "Robbery",
}


class FakeSampler:
    def __init__(self, frames):
        self.frames = frames

    def sample(self, on_progress=None):
        total = max(len(self.frames), 1)
        for i, _ in enumerate(self.frames):
            if on_progress is not None:
                on_progress(round((i + 1) * 100 / total))
        return list(self.frames)


class FakeClient:
    def __init__(self, reply=None, error=None, delay=0.0, gate=None):
        self.reply = reply if reply is not None else {}
        self.error = error
        self.delay = delay
        self.gate = gate
        self.requests = []

    def analyze(self, request):
        self.requests.append(request)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply
