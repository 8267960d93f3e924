import enum
from typing import Optional


class ErrorCategory(str, enum.Enum):
    VALIDATION = "validation"
    AUTHENTICITY = "authenticity"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"


CATEGORY_STATUS = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTHENTICITY: 401,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.TRANSIENT: 500,
}


# =====================================================
#  LICENSE CODE DECODING
# =====================================================

class DecodeErrorKind(str, enum.Enum):
    MALFORMED_PREFIX = "malformed_prefix"
    MALFORMED_ENCODING = "malformed_encoding"
    MALFORMED_STRUCTURE = "malformed_structure"
    INVALID_SIGNATURE = "invalid_signature"
    INVALID_PAYLOAD = "invalid_payload"


DECODE_ERROR_CATEGORY = {
    DecodeErrorKind.MALFORMED_PREFIX: ErrorCategory.VALIDATION,
    DecodeErrorKind.MALFORMED_ENCODING: ErrorCategory.VALIDATION,
    DecodeErrorKind.MALFORMED_STRUCTURE: ErrorCategory.VALIDATION,
    DecodeErrorKind.INVALID_SIGNATURE: ErrorCategory.AUTHENTICITY,
    DecodeErrorKind.INVALID_PAYLOAD: ErrorCategory.VALIDATION,
}


class LicenseDecodeError(ValueError):
    def __init__(self, kind: DecodeErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind

    @property
    def category(self) -> ErrorCategory:
        return DECODE_ERROR_CATEGORY[self.kind]


# =====================================================
#  PAYMENT EVENT AUTHENTICATION
# =====================================================

class AuthErrorKind(str, enum.Enum):
    MALFORMED_HEADER = "malformed_header"
    STALE_TIMESTAMP = "stale_timestamp"
    INVALID_SIGNATURE = "invalid_signature"


AUTH_ERROR_CATEGORY = {
    AuthErrorKind.MALFORMED_HEADER: ErrorCategory.VALIDATION,
    AuthErrorKind.STALE_TIMESTAMP: ErrorCategory.AUTHENTICITY,
    AuthErrorKind.INVALID_SIGNATURE: ErrorCategory.AUTHENTICITY,
}


class WebhookAuthError(Exception):
    def __init__(self, kind: AuthErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind

    @property
    def category(self) -> ErrorCategory:
        return AUTH_ERROR_CATEGORY[self.kind]


# =====================================================
#  ACTIVATION
# =====================================================

class ActivationErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    ALREADY_ACTIVATED = "already_activated"


ACTIVATION_ERROR_CATEGORY = {
    ActivationErrorKind.NOT_FOUND: ErrorCategory.NOT_FOUND,
    ActivationErrorKind.ALREADY_ACTIVATED: ErrorCategory.CONFLICT,
}


class ActivationError(Exception):
    """
    Raised by the ledger when a code cannot be activated.
    For ALREADY_ACTIVATED, activated_by_device names the device that won,
    so a caller retrying after an unknown commit can recognise its own win.
    """

    def __init__(self, kind: ActivationErrorKind, activated_by_device: Optional[str] = None):
        super().__init__(kind.value)
        self.kind = kind
        self.activated_by_device = activated_by_device

    @property
    def category(self) -> ErrorCategory:
        return ACTIVATION_ERROR_CATEGORY[self.kind]


# =====================================================
#  TRANSPORT
# =====================================================

class ApiError(Exception):
    """Error rendered to clients as {"success": false, "error": ..., "message": ...}."""

    def __init__(self, status_code: int, error: str, message: str = "", **extra):
        super().__init__(message or error)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.error}
        if self.message:
            body["message"] = self.message
        body.update(self.extra)
        return body
