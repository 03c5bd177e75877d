# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/bootstrap/certs/provider.py

from __future__ import annotations

import datetime
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from konnect_dp.bootstrap.errors import CertificateRegistrationError
from konnect_dp.bootstrap.models import CertificateMaterial

log = logging.getLogger("konnect_dp")

KEY_FILENAME = "tls.key"
CERT_FILENAME = "tls.crt"

COMMON_NAME = "kongdp"
COUNTRY = "US"
VALIDITY_DAYS = 3650
KEY_SIZE = 2048


def certificate_paths(directory: Path) -> Tuple[Path, Path]:
    directory = Path(directory)
    return directory / KEY_FILENAME, directory / CERT_FILENAME


def validity_window(cert_pem: bytes) -> Optional[Tuple[datetime.datetime, datetime.datetime]]:
    """Return (not_before, not_after) or None if the PEM cannot be parsed."""
    try:
        cert = x509.load_pem_x509_certificate(cert_pem)
    except ValueError as exc:
        log.warning("Could not parse certificate for validity report: %s", exc)
        return None
    return cert.not_valid_before_utc, cert.not_valid_after_utc


class CertificateProvider:
    """
    Produces the node's mutual-TLS key/certificate pair.

    Existing files are reused untouched. Otherwise a self-signed pair with a
    fixed subject (CN=kongdp, C=US) and a ten-year validity window is
    generated and both files are written together.
    """

    def __init__(
        self,
        *,
        key_size: int = KEY_SIZE,
        validity_days: int = VALIDITY_DAYS,
    ):
        self.key_size = key_size
        self.validity_days = validity_days

    def ensure(self, directory: Path) -> CertificateMaterial:
        key_path, cert_path = certificate_paths(directory)

        if key_path.is_file() and cert_path.is_file():
            log.info("Reusing existing certificate files in %s", directory)
            generated = False
        else:
            log.info("Generating new TLS key/cert (%d days)", self.validity_days)
            try:
                key_pem, cert_pem = self._generate()
                self._write_pair(key_path, key_pem, cert_path, cert_pem)
            except (OSError, ValueError, TypeError) as exc:
                raise CertificateRegistrationError(
                    f"Certificate generation failed: {exc}"
                ) from exc
            generated = True

        try:
            material = CertificateMaterial(
                key_path=key_path,
                cert_path=cert_path,
                private_key=key_path.read_bytes(),
                certificate=cert_path.read_bytes(),
                generated=generated,
            )
        except OSError as exc:
            raise CertificateRegistrationError(
                f"Could not read certificate files in {directory}: {exc}"
            ) from exc

        window = validity_window(material.certificate)
        if window:
            log.info("notBefore=%s", window[0].isoformat())
            log.info("notAfter=%s", window[1].isoformat())
        return material

    # -----------------------
    # internals
    # -----------------------
    def _generate(self) -> Tuple[bytes, bytes]:
        key = rsa.generate_private_key(public_exponent=65537, key_size=self.key_size)

        subject = issuer = x509.Name(
            [
                x509.NameAttribute(NameOID.COMMON_NAME, COMMON_NAME),
                x509.NameAttribute(NameOID.COUNTRY_NAME, COUNTRY),
            ]
        )
        now = datetime.datetime.now(datetime.timezone.utc)

        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now)
            .not_valid_after(now + datetime.timedelta(days=self.validity_days))
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(
                x509.ExtendedKeyUsage([ExtendedKeyUsageOID.CLIENT_AUTH]),
                critical=False,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(key.public_key()),
                critical=False,
            )
            .sign(key, hashes.SHA256())
        )

        key_pem = key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        cert_pem = cert.public_bytes(serialization.Encoding.PEM)
        return key_pem, cert_pem

    @staticmethod
    def _write_pair(key_path: Path, key_pem: bytes, cert_path: Path, cert_pem: bytes) -> None:
        """
        Write both files to temporary siblings first, then move them into
        place, so a failure never leaves a fresh key next to a stale cert.
        """
        key_path.parent.mkdir(parents=True, exist_ok=True)
        key_tmp = key_path.with_name(key_path.name + ".tmp")
        cert_tmp = cert_path.with_name(cert_path.name + ".tmp")
        try:
            fd = os.open(key_tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(key_pem)
            cert_tmp.write_bytes(cert_pem)

            os.replace(key_tmp, key_path)
            os.replace(cert_tmp, cert_path)
        finally:
            for tmp in (key_tmp, cert_tmp):
                if tmp.exists():
                    tmp.unlink()
