class InsightsError(Exception):
    """Base exception for the inventory insights backend."""


class DatasetError(InsightsError):
    """Raised when the static inventory / sales-history JSON cannot be loaded."""


class UpstreamError(InsightsError):
    """Raised when the LLM provider call fails (network, auth, rate limit, timeout)."""


class ExtractionError(InsightsError):
    """Raised when no usable JSON can be recovered from the model's text."""


class ShapeError(InsightsError):
    """Raised when the recovered JSON does not match the expected suggestion shape."""
