from __future__ import annotations

from typing import Optional


class HookBuilderError(RuntimeError):
    """Base class for failures surfaced to the user as inline messages."""


class ConfigurationError(HookBuilderError):
    """Raised when a credential or identifier is missing or still a placeholder."""


class UpstreamError(HookBuilderError):
    """Raised when the LLM provider or a cloud service call fails."""

    def __init__(self, detail: str, status: Optional[int] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.detail
        return f"{self.status} - {self.detail}"


class ProtocolError(UpstreamError):
    """Raised when a provider response is missing the expected shape."""


class StaleCopyError(UpstreamError):
    """Raised when a replacement was stored but the superseded copy survived."""

    def __init__(self, new_id: str, old_id: str, detail: str) -> None:
        super().__init__(detail)
        self.new_id = new_id
        self.old_id = old_id


class ParseError(HookBuilderError):
    """Raised internally when a completion cannot be read; callers degrade instead."""


class AuthError(HookBuilderError):
    """Base class for sign-in and session failures."""


class InvalidCredentialsError(AuthError):
    pass


class UnauthorizedUserError(AuthError):
    pass


class TooManyAttemptsError(AuthError):
    pass


class AuthRequiredError(AuthError):
    """Raised when an operation needs a signed-in user and there is none."""


class ValidationError(ValueError):
    """Raised when a form is missing a required field."""
