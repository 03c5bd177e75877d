# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/bootstrap/endpoints.py

from __future__ import annotations

import logging
import re
from typing import Optional

from konnect_dp.bootstrap.errors import EndpointsFetchError
from konnect_dp.bootstrap.models import ControlPlaneIdentity, Endpoint, EndpointPair
from konnect_dp.konnect.client import KonnectAPIError, KonnectClient

log = logging.getLogger("konnect_dp")

DEFAULT_PORT = 443

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")


def parse_endpoint(uri: str) -> Optional[Endpoint]:
    """
    "https://abc.cp0.konghq.com:443/x" -> Endpoint("abc.cp0.konghq.com", 443)

    Returns None when nothing host-like is left.
    """
    rest = _SCHEME_RE.sub("", uri.strip())
    rest = rest.split("/", 1)[0]

    if rest.startswith("[") and "]" in rest:
        # IPv6 literal
        end = rest.index("]") + 1
        host, port = rest[:end], rest[end:].lstrip(":")
    else:
        host, sep, port = rest.rpartition(":")
        if not sep:
            host, port = rest, ""
    if not host:
        return None

    if port:
        if not port.isdigit():
            return None
        return Endpoint(host=host, port=int(port))
    return Endpoint(host=host, port=DEFAULT_PORT)


class EndpointResolver:
    """Reads the management and telemetry endpoints of a control plane."""

    def __init__(self, client: KonnectClient):
        self.client = client

    def fetch(self, identity: ControlPlaneIdentity) -> EndpointPair:
        log.info("Fetching CP & Telemetry endpoints")

        try:
            cp = self.client.get_control_plane(identity.id)
        except KonnectAPIError as exc:
            raise EndpointsFetchError(f"Failed to obtain endpoints: {exc}") from exc

        config = cp.get("config") if isinstance(cp, dict) else None
        config = config if isinstance(config, dict) else {}

        mgmt = parse_endpoint(config.get("control_plane_endpoint") or "")
        tel = parse_endpoint(config.get("telemetry_endpoint") or "")
        if mgmt is None or tel is None:
            raise EndpointsFetchError("Failed to obtain endpoints")

        log.info("CP_ENDPOINT=%s", mgmt.host)
        log.info("TP_ENDPOINT=%s", tel.host)
        return EndpointPair(management=mgmt, telemetry=tel)
