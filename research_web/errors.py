from __future__ import annotations


class ConfigError(RuntimeError):
    """Required configuration is missing or unusable."""


class AnalysisError(Exception):
    """Base for failures that end an /analyze request.

    ``message`` is what the caller sees in the ``error`` field, so it must not
    carry stack traces; upstream status codes and reasons are fine.
    """

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class URLValidationError(AnalysisError):
    status_code = 400


class InvalidURLError(URLValidationError):
    def __init__(self, message: str = "Invalid URL"):
        super().__init__(message)


class URLNotAllowedError(URLValidationError):
    def __init__(self, message: str = "URL not allowed"):
        super().__init__(message)


class FetchError(AnalysisError):
    pass


class ModelError(AnalysisError):
    pass
