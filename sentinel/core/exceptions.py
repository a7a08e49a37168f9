"""
Failure taxonomy for a pipeline run.

Only two things abort a run: nothing could be sampled from the video, or the
analysis service could not be reached / answered with something unusable.
A reply that decodes but has missing or oddly typed fields is NOT an error:
the normalizer absorbs it with defaults.
"""

from typing import Optional


class AnalysisError(Exception):
    """Base class. `message` is safe to show to the user."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class SamplingFailure(AnalysisError):
    default_message = "No frames could be extracted from the video."


class TransportFailure(AnalysisError):
    default_message = "Analysis failed. The analysis service could not be reached."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
