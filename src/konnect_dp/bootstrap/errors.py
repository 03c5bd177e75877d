# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/bootstrap/errors.py


class BootstrapError(RuntimeError):
    """Base class for stage failures. ``exit_code`` is the process exit status."""

    exit_code: int = 1


class MissingCredentialError(BootstrapError):
    exit_code = 10


class ControlPlaneNotFoundError(BootstrapError):
    exit_code = 11


class CertificateRegistrationError(BootstrapError):
    """Raised by the certificate stage (generation, validation, registration)."""

    exit_code = 12


class EndpointsFetchError(BootstrapError):
    exit_code = 13


class ProcessLaunchError(BootstrapError):
    exit_code = 14
