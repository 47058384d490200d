"""
Identity provider abstraction.

Exposes the provider protocol, the normalized AuthUser record, the error
taxonomy, the concrete providers (Mailcow, Microsoft) and the FastAPI auth
router factory (create_auth_router).
"""

from .base import BaseProvider, decode_profile, strip_email_domain
from .config import ProviderConfig
from .errors import InactiveAccountError, MalformedPayloadError, ProviderError, TransportError
from .mailcow import NAME_MAILCOW, MailcowProvider
from .microsoft import NAME_MICROSOFT, MicrosoftProvider
from .models import AuthUser
from .protocol import Provider
from .router import create_auth_router

__all__ = [
    "AuthUser",
    "Provider",
    "ProviderConfig",
    "BaseProvider",
    "decode_profile",
    "strip_email_domain",
    "ProviderError",
    "TransportError",
    "MalformedPayloadError",
    "InactiveAccountError",
    "NAME_MAILCOW",
    "MailcowProvider",
    "NAME_MICROSOFT",
    "MicrosoftProvider",
    "create_auth_router",
]
