# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/bootstrap/certs/registrar.py

from __future__ import annotations

import logging
from typing import Any, Optional

from konnect_dp.bootstrap.errors import CertificateRegistrationError
from konnect_dp.bootstrap.models import (
    CertificateMaterial,
    ControlPlaneIdentity,
    RegisteredCertificate,
)
from konnect_dp.konnect.client import KonnectAPIError, KonnectClient

log = logging.getLogger("konnect_dp")

PEM_HEADER = "-----BEGIN CERTIFICATE-----"
ESCAPED_NEWLINE = "\\n"
PEM_ERROR_MARKER = "pem-encoded-cert"


def normalize_pem(raw: bytes | str) -> str:
    """
    Drop carriage returns and keep real line breaks.

    The result goes into the JSON body as-is; the JSON encoder escapes the
    newlines and the API restores them.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CertificateRegistrationError(
                f"Certificate content is not valid UTF-8 text: {exc}"
            ) from exc
    return raw.replace("\r", "")


def validate_pem(content: str) -> None:
    """
    Warn on a missing PEM header, refuse content that already carries
    literal backslash-n sequences.
    """
    first_line = content.split("\n", 1)[0]
    if first_line != PEM_HEADER:
        log.warning(
            "Certificate file does not start with PEM header; first line: %s",
            first_line,
        )

    if ESCAPED_NEWLINE in content:
        log.warning(
            "Certificate content already contains literal \\n sequences (unexpected). "
            "Aborting to avoid invalid payload."
        )
        raise CertificateRegistrationError("Certificate content malformed (contains literal \\n)")


def _extract_id(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        value = body.get("id")
        if value:
            return str(value)
    return None


class CertificateRegistrar:
    """
    Registers the node certificate with a control plane.

    When the create call does not yield an id (most often because the same
    certificate is already registered) the existing listing is consulted and
    its first entry reused.
    """

    def __init__(self, client: KonnectClient):
        self.client = client

    def register(
        self,
        identity: ControlPlaneIdentity,
        material: CertificateMaterial,
    ) -> RegisteredCertificate:
        log.info("Registering Data Plane certificate")

        content = normalize_pem(material.certificate)
        validate_pem(content)

        cert_id = self._create(identity, content)
        if cert_id:
            log.info("Certificate ID: %s", cert_id)
            return RegisteredCertificate(id=cert_id, control_plane_id=identity.id)

        log.warning(
            "Could not parse CERT_ID (maybe already exists?). "
            "Listing certificates to attempt reuse."
        )
        cert_id = self._first_listed(identity)
        if not cert_id:
            raise CertificateRegistrationError("Certificate registration failed")

        log.info("Certificate ID: %s (reused)", cert_id)
        return RegisteredCertificate(id=cert_id, control_plane_id=identity.id, reused=True)

    # -----------------------
    # internals
    # -----------------------
    def _create(self, identity: ControlPlaneIdentity, content: str) -> Optional[str]:
        try:
            r = self.client.create_dp_client_certificate(identity.id, content)
        except KonnectAPIError as exc:
            log.warning("Certificate submission failed: %s", exc)
            return None

        body_text = r.text or ""
        log.debug("Cert create response: %s", body_text)

        if PEM_ERROR_MARKER in body_text.lower():
            log.error(
                "API reported PEM validation error. Check that the certificate is a "
                "single, valid PEM block without Windows CR or literal \\n."
            )

        try:
            body = r.json()
        except ValueError:
            return None
        return _extract_id(body)

    def _first_listed(self, identity: ControlPlaneIdentity) -> Optional[str]:
        try:
            items = self.client.list_dp_client_certificates(identity.id)
        except KonnectAPIError as exc:
            log.warning("Certificate listing failed: %s", exc)
            return None
        if not items:
            return None
        return _extract_id(items[0])
