# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/observers/dispatcher.py
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol

from .events import BaseEvent

log = logging.getLogger("konnect_dp")


class Observer(Protocol):
    def notify(self, event: BaseEvent) -> None: ...


class EventBus:
    """Fans lifecycle events out to observers; a failing observer is skipped."""

    def __init__(self, observers: Optional[Iterable[Observer]] = None):
        self._observers: List[Observer] = list(observers or [])

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception as exc:
                log.debug(
                    "observer %s dropped %s: %s",
                    type(ob).__name__,
                    type(event).__name__,
                    exc,
                )
