import requests

from sentinel.analysis.models import AnalysisRequest
from sentinel.analysis.normalizer import extract_json_object
from sentinel.core.config import Settings, get_settings
from sentinel.core.exceptions import TransportFailure
from sentinel.core.logging import get_logger
from sentinel.prompts.anomaly_prompt import build_anomaly_prompt


def strip_data_url(image: str) -> str:
    """Ollama wants bare base64, not "data:image/jpeg;base64,..."."""
    if image.startswith("data:") and "," in image:
        return image.split(",", 1)[1]
    return image


class OllamaAnalysisClient:
    """
    Sends all sampled frames to a local vision model in one /api/generate call.

    The model answers in free text; the first JSON object found in it is the
    reply. Text with no recoverable JSON becomes {} and is left to the
    normalizer's defaults. Only transport problems raise.
    """

    def __init__(self, settings: Settings = None):
        self.settings = settings or get_settings()
        self.logger = get_logger()
        self.base_url = self.settings.ollama_host.rstrip("/")
        self.model = self.settings.multimodal_model

    def check_ready(self) -> bool:
        try:
            return requests.get(f"{self.base_url}/api/tags", timeout=5).status_code == 200
        except requests.exceptions.RequestException:
            return False

    def analyze(self, request: AnalysisRequest) -> dict:
        payload = {
            "model": self.model,
            "prompt": build_anomaly_prompt(request.timestamps, request.duration_seconds),
            "images": [strip_data_url(f) for f in request.frames],
            "stream": False,
            "format": "json",
            "options": {
                "num_predict": self.settings.analysis_max_tokens,
                "temperature": 0.1,
            },
        }

        self.logger.info(
            "analysis_request_sent",
            backend="ollama",
            model=self.model,
            frames=len(request.frames),
            duration=request.duration_seconds,
        )

        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json=payload,
                timeout=self.settings.analysis_timeout_seconds,
            )
            response.raise_for_status()
            text = response.json().get("response", "")
        except requests.exceptions.RequestException as e:
            status = getattr(e.response, "status_code", None)
            self.logger.error("analysis_transport_failed", model=self.model, status=status, error=str(e))
            raise TransportFailure(status_code=status) from e
        except (ValueError, AttributeError) as e:
            self.logger.error("analysis_body_undecodable", model=self.model, error=str(e))
            raise TransportFailure("Analysis failed. The vision model sent an unreadable reply.") from e

        reply = extract_json_object(text if isinstance(text, str) else "")
        self.logger.info("analysis_reply_received", backend="ollama", parsed=reply is not None)
        return reply or {}
