"""
Error types for the client components.

All errors inherit from VidshieldError so callers can resolve any failure
to a visible, recoverable state with a single except clause.
"""
import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    """Machine-readable kinds for local and upload failures."""
    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    FILE_TOO_LARGE = "FileTooLarge"
    MISSING_TITLE = "MissingTitle"
    MISSING_FILE = "MissingFile"
    EMPTY_ROLE = "EmptyRole"
    ALREADY_UPLOADING = "AlreadyUploading"
    UPLOAD_FAILED = "UploadFailed"


class VidshieldError(Exception):
    """Base exception for all client-side failures."""
    pass


class ValidationError(VidshieldError):
    """Raised before any network call when local input is invalid."""
    
    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)


class AlreadyUploadingError(VidshieldError):
    """Raised when a second upload is started while one is in flight."""
    
    kind = ErrorKind.ALREADY_UPLOADING
    
    def __init__(self):
        super().__init__("An upload is already in progress")


class ApiError(VidshieldError):
    """Raised when the server rejects a request."""
    
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthorizationError(ApiError):
    """Raised when a role or ownership check fails, locally or on the server."""
    pass


class CredentialRejectedError(AuthorizationError):
    """Raised when the server answers 401; the credential has been cleared."""
    pass


class ConflictOrNotFoundError(ApiError):
    """Raised when the target was already deleted or changed."""
    pass


class TransportError(VidshieldError):
    """Raised on network failures and timeouts. Always retryable."""
    
    retryable = True


class UploadFailedError(VidshieldError):
    """Raised when an upload transfer fails; the selected file is retained."""
    
    kind = ErrorKind.UPLOAD_FAILED
    
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class CredentialRequiredError(VidshieldError):
    """Raised when an authenticated context has no credential."""
    
    def __init__(self):
        super().__init__("Authentication required")
