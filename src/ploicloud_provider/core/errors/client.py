"""API client error classes.

One class per failure kind the resilient client can surface. Every error
carries the ``operation`` it happened in (e.g. ``"create service"``) so the
top of the call stack always has a human-readable action context.
"""

from typing import Optional


class ProviderError(Exception):
    """Base exception for all provider errors.

    Attributes:
        message: Human-readable error description
        operation: Action that failed (e.g. "delete volume"), if known
        original_error: The underlying exception if available
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.operation = operation
        self.original_error = original_error
        super().__init__(self._format())

    def _format(self) -> str:
        if self.operation:
            return f"failed to {self.operation}: {self.message}"
        return self.message

    def with_operation(self, operation: str) -> "ProviderError":
        """Attach an operation name if none is set yet and refresh the message."""
        if not self.operation:
            self.operation = operation
            self.args = (self._format(),)
        return self


class ConfigurationError(ProviderError):
    """Missing credential, endpoint or transport.

    Raised before any network attempt is made. Never retried.
    """


class SerializationError(ProviderError):
    """Request body could not be encoded. Never retried."""


class TransportError(ProviderError):
    """Network, DNS, TLS or timeout failure that outlived the retry bound.

    Attributes:
        attempts: Number of attempts made before giving up
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.attempts = attempts
        super().__init__(
            message=f"failed to execute HTTP request after {attempts} attempts: {message}",
            operation=operation,
            original_error=original_error,
        )


class RequestCanceledError(ProviderError):
    """The caller cancelled the operation or its deadline expired.

    Distinct from ``TransportError`` so that it is never retried.
    """


class APIError(ProviderError):
    """Non-2xx response decoded into an actionable diagnostic.

    Attributes:
        status_code: HTTP status of the response
        field_errors: Field name to validation messages
        suggestion: What the user should try next
        docs_link: Documentation pointer
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        field_errors: Optional[dict[str, list[str]]] = None,
        suggestion: str = "",
        docs_link: str = "",
        operation: Optional[str] = None,
    ):
        self.status_code = status_code
        self.field_errors = field_errors or {}
        self.suggestion = suggestion
        self.docs_link = docs_link
        super().__init__(message=message, operation=operation)

    def _format(self) -> str:
        head = super()._format()
        lines = [head]
        for field_name in sorted(self.field_errors):
            lines.append(f"  {field_name}: {', '.join(self.field_errors[field_name])}")
        if self.suggestion:
            lines.append(f"Suggestion: {self.suggestion}")
        if self.docs_link:
            lines.append(f"Documentation: {self.docs_link}")
        return "\n".join(lines)

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500


class ClientRequestError(APIError):
    """4xx response. The request will not succeed on resubmission."""


class ServerRequestError(APIError):
    """5xx response that was still failing after the retry bound."""


def wrap_operation_error(operation: str, error: Exception) -> ProviderError:
    """Return *error* as a ``ProviderError`` that names *operation*.

    Provider errors are annotated in place; anything else is wrapped so the
    original exception stays reachable via ``original_error``.
    """
    if isinstance(error, ProviderError):
        return error.with_operation(operation)
    return ProviderError(str(error), operation=operation, original_error=error)
