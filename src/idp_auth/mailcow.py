"""
Mailcow OAuth provider.

Mailcow is a self-hosted mail server suite whose OAuth2 server exposes the
mailbox profile at /oauth/profile. Set MAILCOW_BASE_URL (e.g.
https://mail.example.com) plus MAILCOW_CLIENT_ID and MAILCOW_CLIENT_SECRET.
"""

import logging
import os
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from idp_auth.base import BaseProvider, decode_profile, strip_email_domain, token_expiry, token_value
from idp_auth.config import ProviderConfig
from idp_auth.errors import InactiveAccountError
from idp_auth.models import AuthUser

logger = logging.getLogger(__name__)

NAME_MAILCOW = "mailcow"

# profile.php reports active mailboxes with this value
MAILCOW_ACTIVE = 1


class MailcowProfile(BaseModel):
    """Fields of the mailcow profile response.

    Reference: https://github.com/mailcow/mailcow-dockerized/blob/master/data/web/oauth/profile.php

    Types are strict: a bool or string where a number belongs is rejected, while
    null leaves the field at its zero value.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    username: str = ""
    id: str = ""
    identifier: str = ""
    email: str = ""
    full_name: str = ""
    displayName: str = ""
    created: str = ""
    modified: str = ""
    active: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def null_to_zero(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


def mailcow_defaults(base_url: str = "") -> ProviderConfig:
    """Default endpoints under a mailcow host and the profile scope."""
    base_url = base_url.rstrip("/")
    return ProviderConfig(
        auth_url=f"{base_url}/oauth/authorize" if base_url else "",
        token_url=f"{base_url}/oauth/token" if base_url else "",
        user_api_url=f"{base_url}/oauth/profile" if base_url else "",
        scopes=("profile",),
    )


class MailcowProvider:
    """Identity provider for a mailcow installation."""

    name: str = NAME_MAILCOW

    def __init__(
        self,
        base_url: Optional[str] = None,
        config: Optional[ProviderConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        strip_username_domain: bool = True,
    ):
        """
        base_url defaults to MAILCOW_BASE_URL. Mailcow usernames are usually full
        email addresses, so the domain is stripped unless strip_username_domain=False.
        """
        if base_url is None:
            base_url = os.getenv("MAILCOW_BASE_URL", "")
        if config is None:
            config = ProviderConfig.from_env("MAILCOW")
        self.base = BaseProvider(NAME_MAILCOW, mailcow_defaults(base_url), config, http_client)
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
        """Fetch the mailcow profile and return it as an AuthUser. Inactive mailboxes are rejected."""
        data = await self.base.fetch_raw_user_data(token)
        raw_user, extracted = decode_profile(data, MailcowProfile, provider=self.name)

        if extracted.active != MAILCOW_ACTIVE:
            logger.warning("Rejecting inactive mailcow account %s", extracted.id)
            raise InactiveAccountError("User is marked as not active", provider=self.name)

        username = extracted.username
        if self.strip_username_domain:
            username = strip_email_domain(username)

        return AuthUser(
            id=extracted.id,
            name=extracted.full_name,
            username=username,
            email=extracted.email,
            raw_user=raw_user,
            access_token=token_value(token, "access_token") or "",
            refresh_token=token_value(token, "refresh_token") or "",
            expiry=token_expiry(token),
        )
