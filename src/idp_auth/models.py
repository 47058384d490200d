"""Normalized user record returned by every provider."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class AuthUser:
    """Identity of a user as reported by an identity provider.

    id is the provider's stable identifier and is what accounts get linked on.
    raw_user keeps the full decoded profile so provider specific extras stay
    reachable. The tokens are copied verbatim from the token used for the fetch.
    """

    id: str
    name: str = ""
    username: str = ""
    email: str = ""
    raw_user: dict[str, Any] = field(default_factory=dict)
    access_token: str = ""
    refresh_token: str = ""
    expiry: Optional[datetime] = None
