# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/observers/jsonfile.py
from __future__ import annotations

import json
from pathlib import Path

from .events import BaseEvent


class JsonFileObserver:
    """
    Appends one JSON object per event to `<log_dir>/<run_id>.jsonl`.

    Each record carries an "event" key with the event class name next to
    the event fields, so a run can be replayed with `jq` or loaded line by
    line. Events of other runs sharing the bus are ignored.
    """

    def __init__(self, log_dir: str | Path, run_id: str):
        self.run_id = run_id
        self.path = Path(log_dir) / f"{run_id}.jsonl"
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, event: BaseEvent) -> None:
        if event.run_id != self.run_id:
            return
        record = {"event": type(event).__name__, **event.dict()}
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=str, sort_keys=True) + "\n")
