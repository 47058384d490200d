"""
Error taxonomy for identity providers.

Every failure raised while turning a token into an AuthUser is a ProviderError.
Callers tell the outcomes apart by type: TransportError (try again),
InactiveAccountError (the account is disabled) and MalformedPayloadError
(the provider sent something this integration does not understand).
"""

from typing import Optional


class ProviderError(Exception):
    """Base class for errors raised by a provider."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class TransportError(ProviderError):
    """The user info endpoint could not be reached or answered with an HTTP error."""

    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, provider)
        self.status_code = status_code


class MalformedPayloadError(ProviderError):
    """The profile body is not JSON or does not have the expected shape."""


class InactiveAccountError(ProviderError):
    """The account exists but is disabled or suspended by the provider."""
