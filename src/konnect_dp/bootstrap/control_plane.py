# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/bootstrap/control_plane.py

from __future__ import annotations

import logging

from konnect_dp.bootstrap.errors import ControlPlaneNotFoundError
from konnect_dp.bootstrap.models import ControlPlaneIdentity
from konnect_dp.konnect.client import KonnectAPIError, KonnectClient

log = logging.getLogger("konnect_dp")


class ControlPlaneResolver:
    """
    Maps a control plane name to its id.

    A failed listing is reported the same way as an empty one: there is a
    single "not found" outcome for the caller.
    """

    def __init__(self, client: KonnectClient, *, page_size: int = 100):
        self.client = client
        self.page_size = page_size

    def resolve(self, name: str) -> ControlPlaneIdentity:
        log.info("Fetching Control Plane ID for name=%s", name)

        try:
            items = self.client.list_control_planes(page_size=self.page_size)
        except KonnectAPIError as exc:
            log.debug("Control plane listing failed: %s", exc)
            items = []

        matches = [cp for cp in items if cp.get("name") == name and cp.get("id")]
        if not matches:
            raise ControlPlaneNotFoundError(f"Control Plane '{name}' not found")

        if len(matches) > 1:
            # first entry in listing order wins; ordering is up to the API
            log.warning(
                "%d control planes are named '%s'; using the first listed (%s)",
                len(matches),
                name,
                matches[0]["id"],
            )

        identity = ControlPlaneIdentity(id=str(matches[0]["id"]), name=name)
        log.info("Control Plane ID: %s", identity.id)
        return identity
