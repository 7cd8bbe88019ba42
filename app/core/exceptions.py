"""
Service-layer errors.
Raised by app.services and turned into JSON responses by the handler in app.main.
"""
from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(ServiceError):
    """Missing or invalid client input."""
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConfigurationError(ServiceError):
    """A third-party credential or plan code is not configured."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamServiceError(ServiceError):
    """Paystack, Brevo, Arkesel or Anthropic answered with an error."""
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, upstream_status: int = None, payload=None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.payload = payload
