# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/bootstrap/launcher.py

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Tuple

from konnect_dp.bootstrap.errors import ProcessLaunchError
from konnect_dp.bootstrap.models import CertificateMaterial, EndpointPair, RunningProcess
from konnect_dp.docker.cli_runner import DockerCliRunner
from konnect_dp.docker.errors import DockerError

log = logging.getLogger("konnect_dp")


def build_node_environment(
    *,
    material: CertificateMaterial,
    endpoints: EndpointPair,
    labels: str,
) -> Dict[str, str]:
    """Environment of a Konnect-managed data plane node."""
    mgmt = endpoints.management
    tel = endpoints.telemetry
    return {
        "KONG_ROLE": "data_plane",
        "KONG_DATABASE": "off",
        "KONG_VITALS": "off",
        "KONG_CLUSTER_MTLS": "pki",
        "KONG_CLUSTER_CONTROL_PLANE": mgmt.address,
        "KONG_CLUSTER_SERVER_NAME": mgmt.host,
        "KONG_CLUSTER_TELEMETRY_ENDPOINT": tel.address,
        "KONG_CLUSTER_TELEMETRY_SERVER_NAME": tel.host,
        "KONG_CLUSTER_CERT": material.certificate_text,
        "KONG_CLUSTER_CERT_KEY": material.private_key_text,
        "KONG_LUA_SSL_TRUSTED_CERTIFICATE": "system",
        "KONG_KONNECT_MODE": "on",
        "KONG_CLUSTER_DP_LABELS": labels,
    }


class ProcessLauncher:
    """
    Starts the node container, replacing any instance with the same name,
    and shows its first log lines for a bounded window.
    """

    def __init__(
        self,
        docker: Optional[DockerCliRunner] = None,
        *,
        log_follow_seconds: float = 30,
        log_max_lines: int = 200,
    ):
        self.docker = docker or DockerCliRunner()
        self.log_follow_seconds = log_follow_seconds
        self.log_max_lines = log_max_lines

    def launch(
        self,
        name: str,
        image: str,
        ports: Iterable[Tuple[int, int]],
        env: Dict[str, str],
    ) -> RunningProcess:
        ports = tuple(ports)
        log.info("Starting Data Plane container: %s", name)

        # at most one instance per name; a missing container is fine
        self.docker.remove(name)

        try:
            container_id = self.docker.run_detached(name=name, image=image, env=env, ports=ports)
        except DockerError as exc:
            raise ProcessLaunchError(f"docker run failed: {exc}") from exc

        process = RunningProcess(name=name, image=image, container_id=container_id, ports=ports)

        if self.log_follow_seconds > 0:
            log.info("Container started. Tail (first %ss) logs:", self.log_follow_seconds)
            self._follow(name)
        return process

    def remove(self, name: str) -> bool:
        return self.docker.remove(name)

    def exists(self, name: str) -> bool:
        return self.docker.exists(name)

    def _follow(self, name: str) -> None:
        try:
            self.docker.follow_logs(
                name,
                window_s=self.log_follow_seconds,
                max_lines=self.log_max_lines,
                sink=lambda line: log.info("[%s] %s", name, line),
            )
        except DockerError as exc:
            log.warning("Could not follow logs of %s: %s", name, exc)
