"""
Errors raised by the storage facade.

Only two of these are decided locally (missing bucket, bad upload source).
Everything the backend raises reaches the caller as StorageBackendError,
with the original exception kept on `cause` and chained as `__cause__`.
"""

from typing import Optional


class GcsEasyError(Exception):
    """Base class for every error raised by gcs_easy."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class MissingBucketError(GcsEasyError):
    """Raised when neither the call nor the client config names a bucket."""

    def __init__(self) -> None:
        super().__init__(
            "No bucket specified. Set default_bucket on the client or pass bucket per call."
        )


class InvalidUploadSourceError(GcsEasyError):
    """Raised when an upload has no usable source."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message or 'Provide "data" (bytes or str) or "file_path" to upload.'
        )


class AmbiguousUploadSourceError(InvalidUploadSourceError):
    """Raised when an upload names both in-memory data and a local file."""

    def __init__(self) -> None:
        super().__init__('Provide either "data" or "file_path", not both.')


class ConfigurationError(GcsEasyError):
    """Raised when the client configuration cannot be used."""
    pass


class StorageBackendError(GcsEasyError):
    """
    Raised when the object store rejects or fails an operation.

    The facade never retries. `cause` is the exception the backend raised
    (auth, network, not-found, permission, quota...).
    """

    def __init__(self, message: str, cause: BaseException) -> None:
        super().__init__(message, cause)

    @property
    def status_code(self) -> Optional[int]:
        """HTTP status of the backend failure, when the backend reports one."""
        code = getattr(self.cause, "code", None)
        return code if isinstance(code, int) else None

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404
