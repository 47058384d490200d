"""
Provider configuration.

A ProviderConfig holds client credentials, endpoint URLs and scopes. Providers
ship their own defaults; values set by the caller (directly or through
environment variables such as MAILCOW_CLIENT_ID) replace them, unset values
fall back to the defaults.
"""

import os
import re
from dataclasses import dataclass, replace
from typing import Mapping, Optional


@dataclass(frozen=True)
class ProviderConfig:
    """Client credentials, endpoints and scopes for one provider. Empty means unset."""

    client_id: str = ""
    client_secret: str = ""
    auth_url: str = ""
    token_url: str = ""
    user_api_url: str = ""
    scopes: Optional[tuple[str, ...]] = None

    def merged_over(self, defaults: "ProviderConfig") -> "ProviderConfig":
        """Return a config where every value set here wins and everything else comes from defaults."""
        return replace(
            defaults,
            client_id=self.client_id or defaults.client_id,
            client_secret=self.client_secret or defaults.client_secret,
            auth_url=self.auth_url or defaults.auth_url,
            token_url=self.token_url or defaults.token_url,
            user_api_url=self.user_api_url or defaults.user_api_url,
            scopes=tuple(self.scopes) if self.scopes else defaults.scopes,
        )

    @classmethod
    def from_env(cls, prefix: str, environ: Optional[Mapping[str, str]] = None) -> "ProviderConfig":
        """
        Build a config from <PREFIX>_CLIENT_ID, <PREFIX>_CLIENT_SECRET, <PREFIX>_AUTH_URL,
        <PREFIX>_TOKEN_URL, <PREFIX>_USER_API_URL and <PREFIX>_SCOPES (space or comma separated).
        """
        env = os.environ if environ is None else environ
        prefix = prefix.upper()
        raw_scopes = env.get(f"{prefix}_SCOPES", "")
        return cls(
            client_id=env.get(f"{prefix}_CLIENT_ID", ""),
            client_secret=env.get(f"{prefix}_CLIENT_SECRET", ""),
            auth_url=env.get(f"{prefix}_AUTH_URL", ""),
            token_url=env.get(f"{prefix}_TOKEN_URL", ""),
            user_api_url=env.get(f"{prefix}_USER_API_URL", ""),
            scopes=parse_scopes(raw_scopes) or None,
        )


def parse_scopes(value: str) -> tuple[str, ...]:
    """Split a scope string on spaces and commas, keeping order and dropping duplicates."""
    seen: list[str] = []
    for scope in re.split(r"[\s,]+", value.strip()):
        if scope and scope not in seen:
            seen.append(scope)
    return tuple(seen)
