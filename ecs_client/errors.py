"""
Exception classes for the ECS client.

Signing failures (missing credentials, malformed input) and service failures
(non-2xx responses from Amazon ECS) are raised as subclasses of ECSClientError
so callers can handle them together or separately.
"""

from typing import Any, Optional


class ECSClientError(Exception):
    """Base exception for all ECS client errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class CredentialError(ECSClientError):
    """Raised when the access key id or secret access key is missing or empty."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code="CREDENTIAL_ERROR", details=details)


class EncodingError(ECSClientError):
    """Raised when header or body input cannot be canonicalized."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code="ENCODING_ERROR", details=details)


class ECSError(ECSClientError):
    """
    A failed Amazon ECS API call.

    Amazon ECS reports failures as a JSON body with a ``__type`` field naming the
    exception (e.g. ``ClientException``) and a ``message`` field.

    Attributes:
        status_code: HTTP status code of the response
        error_type: Exception name reported by the service
    """

    def __init__(
        self,
        status_code: int,
        message: str = "",
        error_type: str = "",
    ):
        self.status_code = status_code
        self.error_type = error_type
        text = f"ECS request failed with status {status_code}"
        if error_type:
            text += f" ({error_type})"
        if message:
            text += f": {message}"
        super().__init__(
            text,
            error_code=error_type or "ECS_ERROR",
            details={"status_code": status_code, "message": message},
        )

    @classmethod
    def from_response(cls, status_code: int, body: Any) -> "ECSError":
        """
        Build an ECSError from a decoded JSON error body.

        Args:
            status_code: HTTP status code
            body: Decoded JSON body (anything that is not a dict is ignored)

        Returns:
            ECSError carrying the service's error type and message
        """
        if not isinstance(body, dict):
            return cls(status_code)

        # "__type" may be fully qualified, e.g. "com.amazonaws.ecs#ClientException"
        error_type = str(body.get("__type", "")).rsplit("#", 1)[-1]
        message = body.get("message") or body.get("Message") or ""
        return cls(status_code, message=str(message), error_type=error_type)
