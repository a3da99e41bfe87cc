# hr_session/session/errors.py — Client-side session exceptions


class SessionError(Exception):
    """Base exception for session lifecycle operations."""


class NotAuthenticatedError(SessionError):
    """Raised when an operation needs a live principal and there is none."""


class FunctionCallError(SessionError):
    """Raised when a privileged remote function fails or rejects the call."""

    def __init__(self, function_name: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.function_name = function_name
        self.status_code = status_code


class ImpersonationError(SessionError):
    """Raised when impersonation cannot start; the acting session is intact."""


class NotImpersonatingError(ImpersonationError):
    """Raised when stopping impersonation without a backed-up session."""


class RestorationError(ImpersonationError):
    """Raised when the acting session could not be restored and was signed out."""


class ProvisioningError(SessionError):
    """Raised when company-user provisioning fails."""
