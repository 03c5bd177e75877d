# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/observers/logger.py
from __future__ import annotations

import logging
from dataclasses import fields

from .events import BaseEvent

# context fields repeated on every event
_CONTEXT = {f.name for f in fields(BaseEvent)}


class LoggerObserver:
    """Writes each event as a single `[EVENT]` line at DEBUG (log file only by default)."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        details = ", ".join(
            f"{k}={v}" for k, v in event.dict().items() if k not in _CONTEXT and v is not None
        )
        self.logger.debug("[EVENT] %s: %s", type(event).__name__, details)
