"""
errors.py — Exception taxonomy for the FarmFlow record store and API.

Each error carries the HTTP status the API layer answers with. The Flask
error handlers registered in app.py turn them into {"message": ...} bodies.
"""


class FarmFlowError(Exception):
    """Base class for all application errors."""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(FarmFlowError):
    """A record payload is missing required fields or has the wrong shape."""
    status_code = 400


class NotFoundError(FarmFlowError):
    """Update/delete target does not exist."""
    status_code = 404


class StorageUnavailable(FarmFlowError):
    """A table file could not be read from or written to disk."""
    status_code = 503


class CorruptDataError(FarmFlowError):
    """A table file exists with content that cannot be decoded."""
    status_code = 500


class RestoreError(FarmFlowError):
    """Malformed backup upload or a failed write during restore."""
    status_code = 500


class InferenceError(FarmFlowError):
    """The remote inference service failed or returned garbage."""
    status_code = 502
