"""
Custom exception hierarchy for the asset processing pipeline.

Used by the job queue, worker pool, analysis client and event broadcaster.
All pipeline exceptions inherit from PipelineError and can carry a
user-facing message.
"""

# -----------------------------------------------------------------------------
# Standard library
# -----------------------------------------------------------------------------
from typing import Any, Dict, Optional


# -----------------------------------------------------------------------------
# Base
# -----------------------------------------------------------------------------


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or "An error occurred. Please try again."
        self.details = details or {}


# -----------------------------------------------------------------------------
# Enqueue (producer side)
# -----------------------------------------------------------------------------


class MissingFieldError(PipelineError):
    """Raised when a job payload lacks one of the required fields."""

    def __init__(self, field: str):
        super().__init__(
            f"Missing required field: {field}",
            user_message=f"Missing required field: {field}",
            details={"field": field},
        )
        self.field = field


# -----------------------------------------------------------------------------
# Processing
# -----------------------------------------------------------------------------


class ProcessingError(PipelineError):
    """
    Failure while processing a job.

    `retryable` tells the queue whether another attempt should be scheduled;
    `status_code` carries the upstream HTTP status when there was one.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: Optional[bool] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, user_message=message, details=details)
        self.status_code = status_code
        if retryable is not None:
            self.retryable = retryable


class RetryableProcessingError(ProcessingError):
    """Transient failure (5xx, network, timeout). The queue schedules a retry."""

    retryable = True


class TerminalProcessingError(ProcessingError):
    """Permanent failure (4xx, misconfiguration). Remaining retries are skipped."""

    retryable = False


class UnrecognizedResponseError(TerminalProcessingError):
    """Analysis service answered with a payload shape we do not understand."""
    pass


class RetriesExhaustedError(ProcessingError):
    """A retryable failure that hit the attempt ceiling."""

    retryable = False

    def __init__(self, message: str, attempts: int, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code, details={"attempts": attempts})
        self.attempts = attempts


# -----------------------------------------------------------------------------
# Connection authentication
# -----------------------------------------------------------------------------


class AuthenticationError(PipelineError):
    """Base exception for handshake authentication failures."""

    reason: str = "Authentication failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.reason, user_message=self.reason)


class AuthenticationRequiredError(AuthenticationError):
    """No identity token was supplied in the handshake."""

    reason = "Authentication required"


class TokenExpiredError(AuthenticationError):
    """Identity token signature is valid but the token has expired."""

    reason = "Token expired"


class InvalidTokenError(AuthenticationError):
    """Identity token failed verification or carries no identity."""

    reason = "Invalid token"
