from __future__ import annotations

import hmac

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..services.config_svc import Settings, get_settings

bearer_scheme = HTTPBearer(auto_error=False)


def require_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
):
    # /api/* stays closed until an api_token is configured
    if not settings.api_token:
        raise HTTPException(status_code=503, detail="api_token_not_configured")
    if credentials is None or not hmac.compare_digest(credentials.credentials, settings.api_token):
        raise HTTPException(status_code=401, detail="invalid_token", headers={"WWW-Authenticate": "Bearer"})
