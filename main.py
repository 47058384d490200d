"""
FastAPI app: login against any configured identity provider + session storage.

Decisions:
- .env is loaded before importing idp_auth so MAILCOW_*, MICROSOFT_*, AZURE_TENANT_ID
  and SESSION_SECRET are available when the providers are created (Ruff E402 suppressed).
- A provider is only mounted when its client id is configured.
- Session secret from SESSION_SECRET env; default "change-me" is for dev only.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

load_dotenv()

# Load .env before idp_auth so provider env vars are set; Ruff E402.
from idp_auth import MailcowProvider, MicrosoftProvider, create_auth_router  # noqa: E402

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

SESSION_SECRET = os.getenv("SESSION_SECRET", "change-me")

PROVIDERS = {
    provider.name: provider
    for provider in (MailcowProvider(), MicrosoftProvider())
    if provider.client_id
}

app = FastAPI()
app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET)
app.include_router(create_auth_router(PROVIDERS))


@app.get("/")
async def home(request: Request):
    user = request.session.get("user")
    return {"logged_in": bool(user), "user": user, "providers": sorted(PROVIDERS)}
