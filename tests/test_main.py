"""Command-line entry point."""

import json
from unittest.mock import MagicMock, patch

import pytest

import main
from sentinel.analysis.models import AnalysisResult
from sentinel.core.exceptions import SamplingFailure


class FakeController:
    instances = []

    def __init__(self, settings=None, client=None, result=None, failure=None):
        self.settings = settings
        self.client = client
        self._result = result
        self.last_error = failure
        FakeController.instances.append(self)

    async def process_video(self, path):
        self.path = path
        return self._result


@pytest.fixture(autouse=True)
def quiet_logging():
    # keep stdout clean for the JSON assertions
    with patch.object(main, "setup_logging"), patch.object(main, "get_logger", return_value=MagicMock()):
        yield


class TestMain:

    def test_prints_result_json(self, capsys):
        result = AnalysisResult(duration_seconds=12.0, summary="Quiet street")

        with patch.object(main, "PipelineController", lambda **kw: FakeController(result=result, **kw)):
            code = main.main(["clip.mp4", "--frames", "8"])

        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert out["summary"] == "Quiet street"
        assert out["duration"] == 12.0
        controller = FakeController.instances[-1]
        assert controller.path == "clip.mp4"
        assert controller.settings.frame_target_count == 8

    def test_failure_exit_code(self, capsys):
        message = SamplingFailure().message

        with patch.object(main, "PipelineController", lambda **kw: FakeController(failure=message, **kw)):
            code = main.main(["broken.mp4"])

        assert code == 1
        assert json.loads(capsys.readouterr().err) == {"error": message}
