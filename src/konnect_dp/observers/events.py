# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str                  # ISO timestamp
    run_id: str              # correlates all events in a single bootstrap run
    control_plane: str       # configured control plane name
    container: str           # node container name

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(control_plane: str, container: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "control_plane": control_plane,
        "container": container,
    }


# ---------------------------------------------------------------------
# Pipeline stages
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StageStarted(BaseEvent):
    stage: str

@dataclass(frozen=True)
class StageSucceeded(BaseEvent):
    stage: str
    state: str            # state reached, e.g. "CertRegistered"

@dataclass(frozen=True)
class StageFailed(BaseEvent):
    stage: str
    exit_code: int
    error: str


# ---------------------------------------------------------------------
# Cleanup & Summary
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class CleanupPerformed(BaseEvent):
    action: str           # "revoke_certificate" | "remove_process"
    target: str
    ok: bool
    error: Optional[str] = None

@dataclass(frozen=True)
class BootstrapSummary(BaseEvent):
    status: str           # "OK" | "FAILED"
    state: str
    exit_code: int
