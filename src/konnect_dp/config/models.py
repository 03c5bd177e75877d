# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/config/models.py

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REGION = "us"
DEFAULT_IMAGE = "kong/kong-gateway:3.9"
DEFAULT_LABELS = "created-by:manual,type:docker-ci"
DEFAULT_CONTAINER_NAME = "konnect-dp-manual"


def parse_labels(raw: str | None) -> Tuple[Tuple[str, str], ...]:
    """
    Parse "created-by:script,env:local" into ordered (key, value) pairs.

    Only the first ':' separates key from value; empty items are skipped.
    """
    if not raw:
        return ()

    pairs: List[Tuple[str, str]] = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition(":")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid label '{item}' (expected key:value)")
        pairs.append((key, value.strip()))
    return tuple(pairs)


def format_labels(labels: Tuple[Tuple[str, str], ...]) -> str:
    return ",".join(f"{k}:{v}" for k, v in labels)


class BootstrapConfig(BaseModel):
    """Validated, immutable input of one bootstrap run."""

    model_config = ConfigDict(frozen=True)

    cp_name: str
    region: str = DEFAULT_REGION
    image: str = DEFAULT_IMAGE
    labels: Tuple[Tuple[str, str], ...] = Field(
        default_factory=lambda: parse_labels(DEFAULT_LABELS)
    )
    container_name: str = DEFAULT_CONTAINER_NAME
    ttl_seconds: int = Field(default=0, ge=0)
    cleanup_cert: bool = False
    verbose: bool = False

    cert_dir: Path = Path("certs")
    api_base_url: Optional[str] = None
    page_size: int = Field(default=100, gt=0)
    request_timeout: int = Field(default=30, gt=0)
    log_follow_seconds: int = Field(default=30, ge=0)
    ports: Tuple[Tuple[int, int], ...] = ((8000, 8000), (8443, 8443))

    @field_validator("cp_name", "region", "image", "container_name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("labels", mode="before")
    @classmethod
    def _parse_labels(cls, v):
        if v is None or isinstance(v, str):
            return parse_labels(v)
        if isinstance(v, dict):
            return tuple((str(k), str(val)) for k, val in v.items())
        return v

    @property
    def label_string(self) -> str:
        return format_labels(self.labels)

    @property
    def base_url(self) -> str:
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        return f"https://{self.region}.api.konghq.com/v2"
