# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/konnect/client.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

log = logging.getLogger("konnect_dp")


class KonnectAPIError(RuntimeError):
    """Transport failure or non-2xx answer from the Konnect API."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status = status
        self.body = body


class KonnectClient:
    """
    Small Konnect v2 API wrapper (bearer token, JSON in / JSON out).

    Endpoints used:
    - GET    /control-planes
    - GET    /control-planes/<id>
    - POST   /control-planes/<id>/dp-client-certificates
    - GET    /control-planes/<id>/dp-client-certificates
    - DELETE /control-planes/<id>/dp-client-certificates/<cert_id>
    """

    def __init__(self, *, base_url: str, token: str, timeout: int = 30):
        self.base_url = base_url.rstrip("/")
        self._token = token
        self.timeout = timeout

    # -----------------------
    # HTTP helpers
    # -----------------------
    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Send a request and return the response whatever its status.
        Only transport problems raise here.
        """
        url = self._url(path)
        log.debug("[konnect] %s %s", method, url)
        try:
            r = requests.request(
                method,
                url,
                headers=self._headers(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise KonnectAPIError(f"{method} {path} failed: {exc}") from exc
        log.debug("[konnect] %s %s -> %s", method, path, r.status_code)
        return r

    def _json(self, method: str, path: str, **kwargs) -> Any:
        r = self.request(method, path, **kwargs)
        if r.status_code < 200 or r.status_code >= 300:
            raise KonnectAPIError(
                f"{method} {path} failed ({r.status_code}): {r.text[:400]}",
                status=r.status_code,
                body=r.text,
            )
        try:
            return r.json()
        except ValueError as exc:
            raise KonnectAPIError(
                f"{method} {path} returned invalid JSON: {r.text[:400]}",
                status=r.status_code,
                body=r.text,
            ) from exc

    def _object(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        obj = self._json(method, path, **kwargs)
        if obj is None:
            return {}
        if not isinstance(obj, dict):
            raise KonnectAPIError(
                f"{method} {path} returned {type(obj).__name__}, expected an object"
            )
        return obj

    def _data(self, method: str, path: str, **kwargs) -> List[Dict[str, Any]]:
        """The `data` array of a listing; every entry must be an object."""
        items = self._object(method, path, **kwargs).get("data") or []
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise KonnectAPIError(f"{method} {path} returned a malformed 'data' list")
        return items

    # -----------------------
    # Control planes
    # -----------------------
    def list_control_planes(self, *, page_size: int = 100) -> List[Dict[str, Any]]:
        return self._data("GET", "/control-planes", params={"size": page_size})

    def get_control_plane(self, cp_id: str) -> Dict[str, Any]:
        return self._object("GET", f"/control-planes/{cp_id}")

    # -----------------------
    # Data plane client certificates
    # -----------------------
    def create_dp_client_certificate(self, cp_id: str, cert: str) -> requests.Response:
        """
        Returns the raw response: the caller inspects both the identifier
        and the error body.
        """
        return self.request(
            "POST",
            f"/control-planes/{cp_id}/dp-client-certificates",
            json={"cert": cert},
        )

    def list_dp_client_certificates(self, cp_id: str) -> List[Dict[str, Any]]:
        return self._data("GET", f"/control-planes/{cp_id}/dp-client-certificates")

    def delete_dp_client_certificate(self, cp_id: str, cert_id: str) -> None:
        r = self.request(
            "DELETE",
            f"/control-planes/{cp_id}/dp-client-certificates/{cert_id}",
        )
        if r.status_code not in (200, 204):
            raise KonnectAPIError(
                f"Delete certificate {cert_id} failed ({r.status_code}): {r.text[:400]}",
                status=r.status_code,
                body=r.text,
            )
