from typing import Optional, Any


class ReceiptifyError(Exception):
    """
    Base exception for the Receiptify API.
    Carries the HTTP status and machine-readable code it surfaces as.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Auth gate
# ---------------------------------------------------------------------------

class MissingCredentialError(ReceiptifyError):
    """
    Raised when the Authorization header is absent or not a bearer credential.
    """
    def __init__(self, message: str = "No token provided", details: Optional[Any] = None):
        super().__init__(message, code="MISSING_CREDENTIAL", status_code=401, details=details)


class InvalidCredentialError(ReceiptifyError):
    """
    Raised when a bearer token is present but fails verification.
    """
    def __init__(self, message: str = "Invalid or expired token", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_CREDENTIAL", status_code=403, details=details)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

class ValidationError(ReceiptifyError):
    """
    Raised when input is rejected, by the request layer or by the user store.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)


class InvalidCredentialsError(ReceiptifyError):
    """
    Raised on login failure. Unknown email and wrong password are indistinguishable.
    """
    def __init__(self, message: str = "Invalid email or password", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_CREDENTIALS", status_code=401, details=details)


class UserNotFoundError(ReceiptifyError):
    """
    Raised when a verified identity no longer resolves to a user record.
    """
    def __init__(self, message: str = "User not found", details: Optional[Any] = None):
        super().__init__(message, code="USER_NOT_FOUND", status_code=404, details=details)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

class MissingFileError(ReceiptifyError):
    def __init__(self, message: str = "A file is required in the 'file' field", details: Optional[Any] = None):
        super().__init__(message, code="MISSING_FILE", status_code=400, details=details)


class StorageUnavailableError(ReceiptifyError):
    """
    Raised when the object store fails or returns no usable URL.
    """
    def __init__(self, message: str = "Failed to upload to object storage", details: Optional[Any] = None):
        super().__init__(message, code="STORAGE_UNAVAILABLE", status_code=500, details=details)


class PersistenceError(ReceiptifyError):
    def __init__(self, message: str = "Failed to save user record", details: Optional[Any] = None):
        super().__init__(message, code="PERSISTENCE_ERROR", status_code=500, details=details)


# ---------------------------------------------------------------------------
# Email relay
# ---------------------------------------------------------------------------

class MissingFieldsError(ReceiptifyError):
    def __init__(self, message: str = "Email address and receipt file are required", details: Optional[Any] = None):
        super().__init__(message, code="MISSING_FIELDS", status_code=400, details=details)


class TransportFailureError(ReceiptifyError):
    """
    Raised when the email transport cannot deliver a message.
    """
    def __init__(self, message: str = "Failed to send email", details: Optional[Any] = None):
        super().__init__(message, code="TRANSPORT_FAILURE", status_code=500, details=details)


class RateLimitExceededError(ReceiptifyError):
    def __init__(self, message: str = "Too many requests", details: Optional[Any] = None):
        super().__init__(message, code="RATE_LIMITED", status_code=429, details=details)


# ---------------------------------------------------------------------------
# Token service (internal; the auth gate folds these into InvalidCredentialError)
# ---------------------------------------------------------------------------

class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidSignatureError(TokenError):
    """Token is malformed or its signature does not match the signing secret."""


class TokenExpiredError(TokenError):
    """Token signature is valid but its expiry has passed."""
