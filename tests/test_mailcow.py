"""
Tests for the mailcow provider normalization.
"""

from types import SimpleNamespace

import pytest

from conftest import ALICE, make_client
from idp_auth import Provider
from idp_auth.config import ProviderConfig
from idp_auth.errors import InactiveAccountError, MalformedPayloadError, TransportError
from idp_auth.mailcow import NAME_MAILCOW, MailcowProvider
from idp_auth.models import AuthUser


def mailcow(body, status_code=200, seen=None, **kwargs):
    return MailcowProvider(
        base_url="https://mail.example.com",
        config=ProviderConfig(client_id="cid", client_secret="secret"),
        http_client=make_client(body, status_code=status_code, seen=seen),
        **kwargs,
    )


class TestMailcowConfiguration:
    """Test defaults and overrides"""

    def test_satisfies_provider_protocol(self):
        assert isinstance(mailcow(ALICE), Provider)

    def test_default_endpoints_and_scopes(self):
        provider = mailcow(ALICE)

        assert provider.name == NAME_MAILCOW == "mailcow"
        assert provider.auth_url == "https://mail.example.com/oauth/authorize"
        assert provider.token_url == "https://mail.example.com/oauth/token"
        assert provider.user_api_url == "https://mail.example.com/oauth/profile"
        assert provider.scopes == ("profile",)
        assert provider.client_id == "cid"
        assert provider.client_secret == "secret"

    def test_config_overrides_defaults(self):
        provider = MailcowProvider(
            base_url="https://mail.example.com/",
            config=ProviderConfig(user_api_url="https://proxy.example.com/profile", scopes=("profile", "email")),
        )

        assert provider.user_api_url == "https://proxy.example.com/profile"
        assert provider.auth_url == "https://mail.example.com/oauth/authorize"
        assert provider.scopes == ("profile", "email")

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MAILCOW_BASE_URL", "https://mx.example.org")
        monkeypatch.setenv("MAILCOW_CLIENT_ID", "env-id")

        provider = MailcowProvider()

        assert provider.client_id == "env-id"
        assert provider.user_api_url == "https://mx.example.org/oauth/profile"


class TestMailcowFetchAuthUser:
    """Test profile normalization"""

    @pytest.mark.asyncio
    async def test_active_user(self, token):
        seen = []
        user = await mailcow(ALICE, seen=seen).fetch_auth_user(token)

        assert user == AuthUser(
            id="42",
            name="Alice A",
            username="alice",
            email="alice@example.com",
            raw_user=ALICE,
            access_token="tok1",
            refresh_token="ref1",
        )
        assert str(seen[0].url) == "https://mail.example.com/oauth/profile"
        assert seen[0].headers["Authorization"] == "Bearer tok1"

    @pytest.mark.asyncio
    async def test_attribute_token(self):
        token = SimpleNamespace(access_token="tok1", refresh_token="ref1")
        user = await mailcow(ALICE).fetch_auth_user(token)

        assert user.access_token == "tok1"
        assert user.refresh_token == "ref1"
        assert user.expiry is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("active", [0, 2, -1])
    async def test_inactive_user(self, token, active):
        with pytest.raises(InactiveAccountError) as exc_info:
            await mailcow({**ALICE, "active": active}).fetch_auth_user(token)

        assert exc_info.value.provider == "mailcow"

    @pytest.mark.asyncio
    async def test_missing_active_is_inactive(self, token):
        payload = {k: v for k, v in ALICE.items() if k != "active"}

        with pytest.raises(InactiveAccountError):
            await mailcow(payload).fetch_auth_user(token)

    @pytest.mark.asyncio
    async def test_username_without_domain_is_unchanged(self, token):
        user = await mailcow({**ALICE, "username": "alice"}).fetch_auth_user(token)
        assert user.username == "alice"

    @pytest.mark.asyncio
    async def test_username_rule_can_be_disabled(self, token):
        user = await mailcow(ALICE, strip_username_domain=False).fetch_auth_user(token)
        assert user.username == "alice@example.com"

    @pytest.mark.asyncio
    async def test_raw_user_keeps_unknown_fields(self, token):
        payload = {**ALICE, "quota": 1024, "tags": ["a", "b"], "displayName": "Alice"}
        user = await mailcow(payload).fetch_auth_user(token)

        assert user.raw_user == payload

    @pytest.mark.asyncio
    async def test_malformed_json(self, token):
        with pytest.raises(MalformedPayloadError):
            await mailcow(b'{"id": "42", ').fetch_auth_user(token)

    @pytest.mark.asyncio
    async def test_numeric_id_is_malformed(self, token):
        with pytest.raises(MalformedPayloadError):
            await mailcow({**ALICE, "id": 42}).fetch_auth_user(token)

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, token):
        with pytest.raises(TransportError) as exc_info:
            await mailcow({"error": "invalid_token"}, status_code=401).fetch_auth_user(token)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_expiry_copied_from_token(self, token):
        user = await mailcow(ALICE).fetch_auth_user({**token, "expires_at": 1700000000})
        assert user.expiry.timestamp() == 1700000000


class TestMailcowProfileTypes:
    """Test the typed record follows JSON types strictly and treats null as unset"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("active", [True, "1", 1.0])
    async def test_non_integer_active_is_malformed(self, token, active):
        with pytest.raises(MalformedPayloadError):
            await mailcow({**ALICE, "active": active}).fetch_auth_user(token)

    @pytest.mark.asyncio
    async def test_non_bool_success_is_malformed(self, token):
        with pytest.raises(MalformedPayloadError):
            await mailcow({**ALICE, "success": 1}).fetch_auth_user(token)

    @pytest.mark.asyncio
    async def test_null_active_is_inactive(self, token):
        with pytest.raises(InactiveAccountError):
            await mailcow({**ALICE, "active": None}).fetch_auth_user(token)

    @pytest.mark.asyncio
    async def test_null_strings_decode_to_empty(self, token):
        payload = {**ALICE, "full_name": None, "modified": None, "displayName": None}
        user = await mailcow(payload).fetch_auth_user(token)

        assert user.id == "42"
        assert user.name == ""
        assert user.raw_user == payload
