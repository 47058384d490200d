"""
FastAPI auth router: login, callback, /me, logout.

Builds an APIRouter over a mapping of provider name -> Provider. Authlib performs
the authorization code exchange; the provider turns the token into an AuthUser
which is stored in the session.
"""

import logging
from typing import Mapping

from authlib.integrations.starlette_client import OAuth, OAuthError
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from joserfc.errors import JoseError

from idp_auth.errors import InactiveAccountError, MalformedPayloadError, TransportError
from idp_auth.protocol import Provider

logger = logging.getLogger(__name__)


def create_auth_router(providers: Mapping[str, Provider]):
    """Create an APIRouter with /login/{name}, /auth/{name}/callback, /me, and /logout endpoints."""
    oauth = OAuth()
    for name, provider in providers.items():
        oauth.register(name=name, **provider.registration_kwargs())

    router = APIRouter()

    def _lookup(name: str):
        if name not in providers:
            raise HTTPException(status_code=404, detail=f"Unknown provider: {name}")
        return providers[name], oauth.create_client(name)

    @router.get("/login/{name}")
    async def login(name: str, request: Request):
        """Redirect the user to the provider's login page."""
        _, client = _lookup(name)
        return await client.authorize_redirect(request, str(request.url_for("auth_callback", name=name)))

    @router.get("/auth/{name}/callback", name="auth_callback")
    async def auth_callback(name: str, request: Request):
        """Handle OAuth callback: exchange code for token, fetch the user, store it, redirect to /me."""
        provider, client = _lookup(name)
        try:
            token = await client.authorize_access_token(request)
        except (OAuthError, JoseError) as e:
            # JoseError: the id_token failed signature or claims validation
            return JSONResponse({"error": str(e)}, status_code=400)

        try:
            user = await provider.fetch_auth_user(token)
        except InactiveAccountError as e:
            return JSONResponse({"error": str(e)}, status_code=403)
        except (TransportError, MalformedPayloadError) as e:
            logger.error("Fetching user from %s failed: %s", name, e)
            return JSONResponse({"error": str(e)}, status_code=502)

        # Persist user identity in session; tokens stay out of the cookie
        request.session["user"] = {
            "provider": name,
            "id": user.id,
            "name": user.name,
            "username": user.username,
            "email": user.email,
        }
        return RedirectResponse(url="/me")

    @router.get("/me")
    async def me(request: Request):
        """Return current user; 401 if not authenticated."""
        if "user" not in request.session:
            return JSONResponse({"error": "Not authenticated"}, status_code=401)
        return {"user": request.session["user"]}

    @router.get("/logout")
    async def logout(request: Request):
        """Clear session and redirect to home."""
        request.session.clear()
        return RedirectResponse(url="/")

    return router
