"""Custom exception classes for the vault service."""


class VaultError(Exception):
    """
    Base exception class for all vault errors.
    """
    pass


class AuthError(VaultError):
    """
    Raised when the remote service rejects the channel credential.
    """
    pass


class PermissionDeniedError(VaultError):
    """
    Raised when the credential is valid but lacks rights on the channel,
    or when a private file is requested through its share link.
    """
    pass


class NotFoundError(VaultError):
    """
    Raised when a channel, file or expected part is absent.
    """
    pass


class ScanWindowExceededError(NotFoundError):
    """
    Raised when a scan finds no parts or an incomplete part set while the
    message listing was full, meaning older parts may have fallen out of the
    listing window.
    """

    def __init__(self, message: str, missing_parts=None):
        super().__init__(message)
        self.missing_parts = list(missing_parts or [])


class RateLimitError(VaultError):
    """
    Raised when the remote service throttles a request.
    """

    def __init__(self, message: str, retry_after=None):
        super().__init__(message)
        self.retry_after = retry_after


class RemoteProtocolError(VaultError):
    """
    Raised for any other non-success response from the remote service.
    """

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class RemoteUnavailableError(RemoteProtocolError):
    """
    Raised when the remote service cannot be reached or times out.
    """
    pass


class IncompleteUploadError(VaultError):
    """
    Raised when a download targets a file whose upload never completed.
    """
    pass


class FileTooLargeError(VaultError):
    """
    Raised when an upload exceeds the configured maximum file size.
    """
    pass


class InvalidSettingsError(VaultError):
    """
    Raised when a settings update would violate transfer constraints.
    """
    pass
