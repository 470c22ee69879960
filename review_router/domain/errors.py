"""
Router Errors - Failure Taxonomy
================================

Every failure the service reports to a caller is a RouterError carrying a
user-facing message and the HTTP status it maps to. The web layer turns
these into ``{"message": ...}`` responses; nothing else needs to know about
status codes.

    ValidationError        400  bad or missing input
    MalformedPayloadError  400  body is not valid JSON
    NotFoundError          404  unknown tier / no links configured
    UpstreamError          500/502  blob store or third-party API failure
    StorageError           500  configuration write failed
"""


class RouterError(Exception):
    """Base exception for all user-facing router failures."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(RouterError):
    """Request input is missing or invalid."""
    status_code = 400


class MalformedPayloadError(RouterError):
    """Request body could not be parsed as JSON."""
    status_code = 400

    def __init__(self, message: str = "JSON形式が正しくありません。"):
        super().__init__(message)


class NotFoundError(RouterError):
    """Requested tier is unsupported or has nothing to serve."""
    status_code = 404


class UpstreamError(RouterError):
    """An external dependency (store, GAS app, Gemini) failed."""
    status_code = 502


class StorageError(UpstreamError):
    """Writing the configuration document to the blob store failed."""
    status_code = 500

    def __init__(self, message: str = "設定の保存に失敗しました。"):
        super().__init__(message)
