"""
Error taxonomy for the media relay.

Every failure surfaced by the orchestrator and the relay helpers is one of
these kinds. None of them are retried internally; callers get the kind plus
whatever raw payload the provider returned and decide for themselves.
"""

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base class for all relay failures."""

    kind = "relay_error"
    http_status = 500

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.payload = payload

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "kind": self.kind}
        if self.payload is not None:
            body["detail"] = self.payload
        return body


class InvalidArgument(RelayError):
    """Caller supplied a malformed request."""

    kind = "invalid_argument"
    http_status = 400


class ProviderRejected(RelayError):
    """Provider declined a request synchronously."""

    kind = "provider_rejected"
    http_status = 400


class ProviderContractViolation(RelayError):
    """Provider answered with success but omitted a field we rely on."""

    kind = "provider_contract_violation"
    http_status = 502


class ProviderUnavailable(RelayError):
    """Status check failed at the transport level."""

    kind = "provider_unavailable"
    http_status = 502


class Timeout(RelayError):
    """Bounded wait ran out before the job reached a terminal state.

    The job itself is unaffected, so ``task_handle`` stays valid for
    later polling.
    """

    kind = "timeout"
    http_status = 408

    def __init__(self, message: str, task_handle: Optional[Any] = None, payload: Any = None):
        super().__init__(message, payload)
        self.task_handle = task_handle

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.task_handle is not None:
            body["taskHandle"] = str(self.task_handle)
        return body


class ConfigurationError(RelayError):
    """Missing credential or unknown provider in process configuration."""

    kind = "configuration_error"
    http_status = 500


class AuthenticationFailed(RelayError):
    """Identity provider refused a session operation."""

    kind = "authentication_failed"
    http_status = 401
