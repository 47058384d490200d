"""Shared fixtures: fake user info endpoints built on httpx.MockTransport."""

import json

import httpx
import pytest

from idp_auth.config import ProviderConfig

ALICE = {
    "success": True,
    "username": "alice@example.com",
    "id": "42",
    "email": "alice@example.com",
    "full_name": "Alice A",
    "active": 1,
}

GRAPH_USER = {
    "@odata.context": "https://graph.microsoft.com/v1.0/$metadata#users/$entity",
    "id": "87d349ed-44d7-43e1-9a83-5f2406dee5bd",
    "displayName": "Adele Vance",
    "userPrincipalName": "AdeleV@contoso.com",
    "mail": "adele.vance@contoso.com",
    "accountEnabled": True,
}


def make_client(body, status_code: int = 200, seen: list | None = None) -> httpx.AsyncClient:
    """AsyncClient answering every request with body (dict/list -> JSON, bytes/str verbatim)."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        content = json.dumps(body).encode() if isinstance(body, (dict, list)) else body
        if isinstance(content, str):
            content = content.encode()
        return httpx.Response(status_code, content=content)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def token():
    return {"access_token": "tok1", "refresh_token": "ref1", "token_type": "Bearer"}


@pytest.fixture
def mailcow_config():
    return ProviderConfig(client_id="cid", client_secret="secret")
