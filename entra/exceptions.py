from typing import Optional


class DirectoryServiceError(Exception):
    """Base exception for directory service errors."""
    pass

class DirectoryConfigurationError(DirectoryServiceError):
    """Raised when required directory credentials are missing."""
    pass

class DirectoryAuthenticationError(DirectoryServiceError):
    """Raised when the client credential exchange fails."""
    pass

class DirectoryRequestError(DirectoryServiceError):
    """Raised when a directory request fails in transport or returns a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code

class DirectoryObjectNotFoundError(DirectoryRequestError):
    """Raised when the directory reports that the requested object does not exist."""
    pass
