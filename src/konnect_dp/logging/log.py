# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

#src/konnect_dp/logging/log.py

from __future__ import annotations

import logging
import os
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

DEFAULT_LOG_DIR = Path.home() / ".konnect-dp" / "logs"
LOG_DIR_ENV = "KONNECT_DP_LOG_DIR"

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_BEARER_RE = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)
_PRIVATE_KEY_RE = re.compile(
    r"-----BEGIN ([A-Z ]*)PRIVATE KEY-----.*?-----END \1PRIVATE KEY-----",
    re.DOTALL,
)


class SecretMaskingFilter(logging.Filter):
    """Masks bearer tokens and PEM private key blocks before a record is written."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _BEARER_RE.sub(r"\1***", message)
        masked = _PRIVATE_KEY_RE.sub("<private key redacted>", masked)
        if masked != message:
            record.msg, record.args = masked, None
        return True


def resolve_log_dir(base_dir: Optional[Path] = None) -> Path:
    """Explicit argument, then $KONNECT_DP_LOG_DIR, then ~/.konnect-dp/logs."""
    if base_dir is not None:
        return Path(base_dir)
    env = os.environ.get(LOG_DIR_ENV)
    return Path(env).expanduser() if env else DEFAULT_LOG_DIR


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "konnect_dp",
    verbose: bool = False,
    run_id: Optional[str] = None,
) -> tuple[logging.Logger, str, Path]:
    """
    One bootstrap run gets:
      - its own DEBUG log file, named after the run id
      - console output at INFO (DEBUG with --verbose)
    Both handlers mask secrets. Calling it again replaces the handlers of
    the previous run.
    """
    run_id = run_id or str(uuid.uuid4())
    log_dir = resolve_log_dir(base_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = log_dir / f"{name}-{ts}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    masking = SecretMaskingFilter()

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in (file_handler, console):
        handler.setFormatter(formatter)
        handler.addFilter(masking)
        logger.addHandler(handler)

    logger.debug("konnect-dp run %s, log file %s", run_id, log_path)
    return logger, run_id, log_path
