"""
Protocol for identity providers.

Implementations (e.g. Mailcow, Microsoft) expose their endpoints and scopes for
the external token exchange and turn an already obtained token into an AuthUser.
"""

from typing import Any, Protocol, runtime_checkable

from idp_auth.models import AuthUser


@runtime_checkable
class Provider(Protocol):
    """Protocol for an OAuth2/OIDC identity provider (e.g. Mailcow, Microsoft)."""

    name: str

    @property
    def scopes(self) -> tuple[str, ...]: ...

    @property
    def client_id(self) -> str: ...

    @property
    def client_secret(self) -> str: ...

    @property
    def auth_url(self) -> str: ...

    @property
    def token_url(self) -> str: ...

    @property
    def user_api_url(self) -> str: ...

    def registration_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for authlib's OAuth.register."""
        ...

    async def fetch_auth_user(self, token) -> AuthUser:
        """Fetch the profile with the given token and normalize it into an AuthUser."""
        ...
