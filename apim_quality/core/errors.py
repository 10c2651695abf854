"""
Errors raised while extracting Application quality.

Every error is terminal for the run: the CLI reports it and exits non-zero.
"""


class QualityAuditError(Exception):
    """Base class of the quality extraction errors."""
    pass


class AuthenticationError(QualityAuditError):
    """Raised when the management service rejects the credentials."""

    def __init__(self, username: str | None, status_code: int | None = None):
        self.username = username
        self.status_code = status_code
        detail = f" (HTTP {status_code})" if status_code else ""
        super().__init__(f"Authentication rejected for user '{username}'{detail}")


class ApplicationNotFoundError(QualityAuditError):
    """Raised when a single Application lookup does not resolve."""

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(f"Application '{application_id}' not found")


class DiscoveryTimeoutError(QualityAuditError):
    """Raised when the Application listing exceeds its overall bound."""

    def __init__(self, timeout_ms: float, emitted: int = 0):
        self.timeout_ms = timeout_ms
        self.emitted = emitted
        super().__init__(
            f"Application listing timed out after {timeout_ms:g} ms "
            f"({emitted} Application(s) discovered)"
        )


class EvaluationError(QualityAuditError):
    """Raised when a criterion evaluation fails for an Application."""

    def __init__(self, reference: str, application_id: str, cause: BaseException):
        self.reference = reference
        self.application_id = application_id
        self.cause = cause
        super().__init__(
            f"[{reference}] evaluation failed for Application '{application_id}': "
            f"{type(cause).__name__}: {cause}"
        )
