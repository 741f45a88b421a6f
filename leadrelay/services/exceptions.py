from typing import List


class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class InvalidWebhookKeyError(ServiceError):
    """Raised when an inbound webhook carries the wrong shared secret."""


class DownstreamServiceError(ServiceError):
    """Raised when the CRM returns an error response or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None, *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class TenantConfigError(DownstreamServiceError):
    """Raised when the tenant lead configuration is unavailable or unusable."""


class ForwardingError(DownstreamServiceError):
    """Raised once every attempt to deliver a lead has failed."""

    def __init__(
        self,
        message: str,
        attempts: List[str],
        status_code: int | None = None,
        *,
        cause: Exception | None = None,
    ):
        super().__init__(message, status_code=status_code, cause=cause)
        self.attempts = attempts
