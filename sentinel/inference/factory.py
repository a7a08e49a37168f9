from sentinel.core.config import Settings, get_settings
from sentinel.inference.http_client import AnalysisServiceClient
from sentinel.inference.ollama_client import OllamaAnalysisClient


def build_inference_client(settings: Settings = None):
    settings = settings or get_settings()
    if settings.analysis_backend == "ollama":
        return OllamaAnalysisClient(settings)
    return AnalysisServiceClient(settings)
