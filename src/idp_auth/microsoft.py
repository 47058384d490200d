"""
Microsoft Entra (Azure AD) OAuth provider.

Resolves the signed-in user through Microsoft Graph /me. Requires AZURE_TENANT_ID
(defaults to "common"), plus MICROSOFT_CLIENT_ID and MICROSOFT_CLIENT_SECRET.
"""

import logging
import os
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from idp_auth.base import BaseProvider, decode_profile, strip_email_domain, token_expiry, token_value
from idp_auth.config import ProviderConfig
from idp_auth.errors import InactiveAccountError
from idp_auth.models import AuthUser

logger = logging.getLogger(__name__)

NAME_MICROSOFT = "microsoft"

GRAPH_BASE = "https://graph.microsoft.com/v1.0"
# accountEnabled is only returned when selected explicitly
GRAPH_ME_URL = f"{GRAPH_BASE}/me?$select=id,displayName,userPrincipalName,mail,accountEnabled"


class GraphUser(BaseModel):
    """Subset of the Graph user resource used for normalization."""

    id: str = ""
    displayName: Optional[str] = None
    userPrincipalName: Optional[str] = None
    mail: Optional[str] = None
    accountEnabled: Optional[bool] = None


def microsoft_jwks_uri(tenant_id: str = "common") -> str:
    """Signing keys for ID tokens issued to the tenant (also valid for common/organizations)."""
    return f"https://login.microsoftonline.com/{tenant_id}/discovery/v2.0/keys"


def microsoft_defaults(tenant_id: str = "common") -> ProviderConfig:
    """Default Entra endpoints for the tenant and least-privileged delegated scopes."""
    authority = f"https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0"
    return ProviderConfig(
        auth_url=f"{authority}/authorize",
        token_url=f"{authority}/token",
        user_api_url=GRAPH_ME_URL,
        scopes=("openid", "profile", "email", "offline_access", "User.Read"),
    )


class MicrosoftProvider:
    """Identity provider for Microsoft Entra (Azure AD) using Graph for the profile."""

    name: str = NAME_MICROSOFT

    def __init__(
        self,
        tenant_id: Optional[str] = None,
        config: Optional[ProviderConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        strip_username_domain: bool = False,
    ):
        """tenant_id defaults to AZURE_TENANT_ID, then "common". The username rule is off by default."""
        if tenant_id is None:
            tenant_id = os.getenv("AZURE_TENANT_ID") or "common"
        if config is None:
            config = ProviderConfig.from_env("MICROSOFT")
        # The openid scope makes authlib validate the returned id_token against these keys
        self.base = BaseProvider(
            NAME_MICROSOFT,
            microsoft_defaults(tenant_id),
            config,
            http_client,
            extra_registration={"jwks_uri": microsoft_jwks_uri(tenant_id)},
        )
        self.strip_username_domain = strip_username_domain

    @property
    def scopes(self) -> tuple[str, ...]:
        """Requested scopes, in order."""
        return self.base.scopes

    @property
    def client_id(self) -> str:
        """OAuth2 client id."""
        return self.base.client_id

    @property
    def client_secret(self) -> str:
        """OAuth2 client secret."""
        return self.base.client_secret

    @property
    def auth_url(self) -> str:
        """Authorization endpoint."""
        return self.base.auth_url

    @property
    def token_url(self) -> str:
        """Token endpoint."""
        return self.base.token_url

    @property
    def user_api_url(self) -> str:
        """User info endpoint."""
        return self.base.user_api_url

    def registration_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for authlib's OAuth.register."""
        return self.base.registration_kwargs()

    async def fetch_auth_user(self, token) -> AuthUser:
        """Fetch Graph /me and return it as an AuthUser. Disabled accounts are rejected."""
        data = await self.base.fetch_raw_user_data(token)
        raw_user, extracted = decode_profile(data, GraphUser, provider=self.name)

        # Missing accountEnabled means the field was not selectable for this tenant
        if extracted.accountEnabled is False:
            logger.warning("Rejecting disabled Microsoft account %s", extracted.id)
            raise InactiveAccountError("User account is disabled", provider=self.name)

        username = extracted.userPrincipalName or ""
        if self.strip_username_domain:
            username = strip_email_domain(username)

        return AuthUser(
            id=extracted.id,
            name=extracted.displayName or "",
            username=username,
            email=extracted.mail or extracted.userPrincipalName or "",
            raw_user=raw_user,
            access_token=token_value(token, "access_token") or "",
            refresh_token=token_value(token, "refresh_token") or "",
            expiry=token_expiry(token),
        )
