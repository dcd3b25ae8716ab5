from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class BearerAuthentication:
    """Fetches a token from a token endpoint once and hands out ``Bearer <token>`` headers.

    ``request_options`` is passed straight to ``requests.post`` (json/data/headers/timeout...).
    """

    def __init__(self, url: Optional[str] = None, request_options: Optional[Dict[str, Any]] = None,
                 token_key: str = "token", token: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.request_options = request_options
        self.token_key = token_key
        self.token = token
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings, request_options: Optional[Dict[str, Any]] = None,
                      session: Optional[requests.Session] = None) -> "BearerAuthentication":
        return cls(url=settings.token_url, request_options=request_options,
                   token_key=settings.token_key, session=session)

    def get_authorization_header(self, renew: bool = False) -> Optional[str]:
        if renew:
            self.token = None
        if not self.token:
            self.token = self.get_token()
        if self.token:
            return f"Bearer {self.token}"
        return None

    def get_token(self) -> Optional[str]:
        if not self.request_options or not self.token_key or not self.url:
            return None
        options = dict(self.request_options)
        options.setdefault("timeout", 30)
        try:
            resp = self.session.post(self.url, **options)
            resp.raise_for_status()
            return resp.json().get(self.token_key)
        except requests.RequestException as e:
            body = getattr(getattr(e, "response", None), "text", None)
            logger.error("token request to %s failed: %s %s", self.url, e, body or "")
            return None
        except ValueError as e:
            logger.error("token response from %s is not JSON: %s", self.url, e)
            return None


class BasicAuthentication:
    def __init__(self, username: Optional[str] = None, password: Optional[str] = None):
        self.username = username
        self.password = password

    def get_authorization_header(self, renew: bool = False) -> Optional[str]:
        if self.username and self.password and isinstance(self.username, str) and isinstance(self.password, str):
            raw = f"{self.username}:{self.password}".encode("utf-8")
            return "Basic " + base64.b64encode(raw).decode("ascii")
        return None
