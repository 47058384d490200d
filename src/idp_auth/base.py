"""
Behaviour shared by all providers.

Concrete providers own a BaseProvider (composition, not inheritance) holding the
merged configuration and the raw user data fetch. The helpers below cover the
steps every provider repeats: reading token fields, decoding the profile body
into an open dict plus a typed record, and the opt-in email-username rule.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from idp_auth.config import ProviderConfig
from idp_auth.errors import MalformedPayloadError, TransportError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class BaseProvider:
    """Configuration and user info fetching shared by concrete providers."""

    def __init__(
        self,
        name: str,
        defaults: ProviderConfig,
        config: Optional[ProviderConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        extra_registration: Optional[dict[str, Any]] = None,
    ):
        """
        Merge the caller's config over the provider defaults. http_client is owned by the caller.
        extra_registration holds provider specific authlib settings such as jwks_uri.
        """
        self.name = name
        self.config = (config or ProviderConfig()).merged_over(defaults)
        self.http_client = http_client
        self.extra_registration = dict(extra_registration or {})

    @property
    def scopes(self) -> tuple[str, ...]:
        return self.config.scopes or ()

    @property
    def client_id(self) -> str:
        return self.config.client_id

    @property
    def client_secret(self) -> str:
        return self.config.client_secret

    @property
    def auth_url(self) -> str:
        return self.config.auth_url

    @property
    def token_url(self) -> str:
        return self.config.token_url

    @property
    def user_api_url(self) -> str:
        return self.config.user_api_url

    def registration_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for authlib's OAuth.register (the external token exchange)."""
        return {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "authorize_url": self.auth_url,
            "access_token_url": self.token_url,
            "client_kwargs": {"scope": " ".join(self.scopes)},
            **self.extra_registration,
        }

    async def fetch_raw_user_data(self, token) -> bytes:
        """
        GET the user info endpoint with the token as bearer credential and return the body.

        No parsing, no retry. Network failures and non-2xx answers raise TransportError.
        Timeouts and cancellation belong to the caller (injected client or the awaiting task).
        """
        access_token = token_value(token, "access_token")
        if not access_token:
            raise ValueError("token has no access_token")

        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        logger.debug("Fetching user info from %s for provider %s", self.user_api_url, self.name)
        try:
            if self.http_client is not None:
                r = await self.http_client.get(self.user_api_url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=None) as client:
                    r = await client.get(self.user_api_url, headers=headers)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"user info request failed with status {e.response.status_code}",
                provider=self.name,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"user info request failed: {e}", provider=self.name) from e

        return r.content


def token_value(token, key: str) -> Any:
    """Read a field from a token that is either a mapping (authlib's OAuth2Token) or an object."""
    if token is None:
        return None
    if hasattr(token, "get") and not isinstance(token, (str, bytes)):
        return token.get(key)
    return getattr(token, key, None)


def token_expiry(token) -> Optional[datetime]:
    """Return the token's expires_at epoch as an aware datetime, or None when absent."""
    expires_at = token_value(token, "expires_at")
    if expires_at is None or expires_at == "":
        return None
    try:
        return datetime.fromtimestamp(int(expires_at), tz=timezone.utc)
    except (TypeError, ValueError):
        return None


def decode_profile(data: bytes, schema: type[SchemaT], provider: Optional[str] = None) -> tuple[dict[str, Any], SchemaT]:
    """
    Decode a profile body twice: into an open dict (kept verbatim as raw_user) and
    into the provider's typed record with the fields normalization relies on.

    Raises MalformedPayloadError when the body is not a JSON object or the typed
    record rejects it.
    """
    try:
        raw_user = json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedPayloadError(f"user info is not valid JSON: {e}", provider=provider) from e
    if not isinstance(raw_user, dict):
        raise MalformedPayloadError(
            f"user info must be a JSON object, got {type(raw_user).__name__}", provider=provider
        )

    try:
        extracted = schema.model_validate(raw_user)
    except ValidationError as e:
        raise MalformedPayloadError(f"unexpected user info shape: {e}", provider=provider) from e

    return raw_user, extracted


def strip_email_domain(username: str) -> str:
    """Return the part before the first '@' for email-shaped usernames, otherwise the input."""
    if "@" in username:
        return username.split("@", 1)[0]
    return username
