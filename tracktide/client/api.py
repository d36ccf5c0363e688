#!/usr/bin/env python
"""
HTTP client for the TrackTide REST API.

Wraps a requests.Session, attaches the bearer credential from the session
context and rebuilds the error taxonomy from error responses. Transport
failures become NetworkError.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import requests

from tracktide.client.models import Track
from tracktide.errors import AuthError, NetworkError, error_from_response

logger = logging.getLogger(__name__)

REQUIRED = "required"
OPTIONAL = "optional"
NONE = "none"


class ApiClient:
    def __init__(
        self,
        base_url: str,
        session,
        *,
        timeout: float = 10.0,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout
        self.http = http or requests.Session()

    @classmethod
    def from_settings(cls, settings, session, http: Optional[requests.Session] = None) -> "ApiClient":
        return cls(settings.api_url, session, timeout=settings.request_timeout, http=http)

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        auth: str = REQUIRED,
    ) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if auth != NONE:
            token = self.session.token
            if token:
                headers["Authorization"] = f"Bearer {token}"
            elif auth == REQUIRED:
                # No credential: fail locally without touching the network
                raise AuthError("Authentication required")

        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(
                method,
                url,
                json=json,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError("Could not reach the TrackTide server") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            raise error_from_response(response.status_code, payload)
        if not isinstance(payload, dict):
            raise NetworkError("Unexpected response from the TrackTide server")
        return payload

    def get(self, path: str, **kwargs) -> Dict[str, Any]:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Dict[str, Any]:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Dict[str, Any]:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Dict[str, Any]:
        return self.request("DELETE", path, **kwargs)

    # --- auth -----------------------------------------------------------

    def signup(self, name: str, email: str, password: str) -> dict:
        payload = self.post(
            "/auth/signup",
            json={"name": name, "email": email, "password": password},
            auth=NONE,
        )
        self.session.login(payload["token"], payload.get("user"))
        return payload["user"]

    def login(self, email: str, password: str) -> dict:
        payload = self.post("/auth/login", json={"email": email, "password": password}, auth=NONE)
        self.session.login(payload["token"], payload.get("user"))
        return payload["user"]

    def logout(self) -> None:
        self.session.logout()

    def me(self) -> dict:
        return self.get("/auth/me")["user"]

    # --- catalog --------------------------------------------------------

    def search(self, query: str) -> Tuple[list, int]:
        payload = self.get("/songs/search", params={"q": query}, auth=OPTIONAL)
        tracks = [Track.from_api(song) for song in payload.get("songs") or []]
        return tracks, int(payload.get("total") or 0)

    def health(self) -> dict:
        return self.get("/health", auth=NONE)


__all__ = ["ApiClient", "REQUIRED", "OPTIONAL", "NONE"]
