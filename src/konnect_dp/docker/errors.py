# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/docker/errors.py
class DockerError(RuntimeError):
    """Raised when a docker CLI invocation exits non-zero or cannot be started."""
