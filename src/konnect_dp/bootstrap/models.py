# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/bootstrap/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class CertificateMaterial:
    """
    Key/certificate pair as persisted in the certificate directory.

    Both values are the PEM text exactly as read from disk.
    """
    key_path: Path
    cert_path: Path
    private_key: bytes
    certificate: bytes
    generated: bool = False   # False when the files were reused

    @property
    def certificate_text(self) -> str:
        return self.certificate.decode("utf-8")

    @property
    def private_key_text(self) -> str:
        return self.private_key.decode("utf-8")


@dataclass(frozen=True)
class ControlPlaneIdentity:
    id: str
    name: str


@dataclass(frozen=True)
class RegisteredCertificate:
    id: str
    control_plane_id: str
    reused: bool = False      # True when obtained through the listing fallback


@dataclass(frozen=True)
class Endpoint:
    host: str
    port: int = 443

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class EndpointPair:
    management: Endpoint
    telemetry: Endpoint


@dataclass(frozen=True)
class RunningProcess:
    name: str
    image: str
    container_id: str
    ports: Tuple[Tuple[int, int], ...] = ()


class BootstrapState(str, Enum):
    INIT = "Init"
    CERT_READY = "CertReady"
    CP_RESOLVED = "CPResolved"
    CERT_REGISTERED = "CertRegistered"
    ENDPOINTS_RESOLVED = "EndpointsResolved"
    PROCESS_RUNNING = "ProcessRunning"
    DONE = "Done"
    FAILING = "Failing"


@dataclass(frozen=True)
class BootstrapContext:
    """
    Record threaded through the pipeline. Each stage returns a new copy
    (dataclasses.replace) with its own result filled in.
    """
    state: BootstrapState = BootstrapState.INIT
    material: Optional[CertificateMaterial] = None
    identity: Optional[ControlPlaneIdentity] = None
    certificate: Optional[RegisteredCertificate] = None
    endpoints: Optional[EndpointPair] = None
    process: Optional[RunningProcess] = None
    launch_attempted: bool = False
    exit_code: int = 0
