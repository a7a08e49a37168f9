import requests

from sentinel.analysis.models import AnalysisRequest
from sentinel.core.config import Settings, get_settings
from sentinel.core.exceptions import TransportFailure
from sentinel.core.logging import get_logger


class AnalysisServiceClient:
    """
    Single-shot POST of an AnalysisRequest to the hosted analysis function.

    No retries, no backoff: every call is user-initiated and resubmitting is
    the user's call. Anything short of a 2xx JSON object comes back as a
    TransportFailure. Callers never see partial results.
    """

    def __init__(self, settings: Settings = None, session: requests.Session = None):
        self.settings = settings or get_settings()
        self.logger = get_logger()
        self.url = self.settings.analysis_endpoint_url
        # Only a session this client opened is closed by close()
        self._owns_session = session is None
        self.session = session or requests.Session()

    def close(self):
        if self._owns_session:
            self.session.close()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        key = self.settings.analysis_api_key
        if key:
            headers["Authorization"] = f"Bearer {key}"
            headers["apikey"] = key
        return headers

    def analyze(self, request: AnalysisRequest) -> dict:
        self.logger.info(
            "analysis_request_sent",
            backend="http",
            url=self.url,
            frames=len(request.frames),
            duration=request.duration_seconds,
        )

        try:
            response = self.session.post(
                self.url,
                json=request.to_payload(),
                headers=self._headers(),
                timeout=self.settings.analysis_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            self.logger.error("analysis_transport_failed", url=self.url, error=str(e))
            raise TransportFailure() from e

        if not response.ok:
            self.logger.error(
                "analysis_bad_status",
                url=self.url,
                status=response.status_code,
                body=response.text[:200],
            )
            raise TransportFailure(
                f"Analysis failed. The analysis service returned HTTP {response.status_code}.",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            self.logger.error("analysis_body_undecodable", url=self.url, body=response.text[:200])
            raise TransportFailure(
                "Analysis failed. The analysis service sent an unreadable reply.",
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            self.logger.error("analysis_body_not_object", url=self.url, body_type=type(body).__name__)
            raise TransportFailure(
                "Analysis failed. The analysis service sent an unreadable reply.",
                status_code=response.status_code,
            )

        self.logger.info("analysis_reply_received", backend="http", keys=sorted(body.keys()))
        return body
