"""Exception hierarchy for the 4mica SDK."""

from __future__ import annotations

from typing import Any, Optional


class FourMicaError(Exception):
    """Base class for every error raised by the SDK."""


class ValidationError(FourMicaError, ValueError):
    """Raised when a pure helper receives malformed input."""


class ConfigError(FourMicaError):
    pass


class RpcError(FourMicaError):
    def __init__(self, message: str, *, status: Optional[int] = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class ClientInitializationError(FourMicaError):
    pass


class SigningError(FourMicaError):
    pass


class ContractError(FourMicaError):
    pass


class VerificationError(FourMicaError):
    pass


class X402Error(FourMicaError):
    pass


class AuthError(FourMicaError):
    pass


class AuthTransportError(AuthError):
    pass


class AuthDecodeError(AuthError):
    pass


class AuthApiError(AuthError):
    """Non-2xx response from the auth endpoint; ``status`` holds the HTTP code."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class AuthConfigError(AuthError):
    pass


class AuthUrlError(AuthConfigError):
    pass


class AuthMissingConfigError(AuthConfigError):
    pass


class UnsupportedNetworkError(ConfigError, ValueError):
    """Raised when a network has no 4mica defaults."""
