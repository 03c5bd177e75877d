# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from konnect_dp.bootstrap.certs.provider import CertificateProvider, validity_window
from konnect_dp.bootstrap.errors import BootstrapError
from konnect_dp.bootstrap.lifecycle import INTERRUPTED_EXIT_CODE, LifecycleManager
from konnect_dp.config.loader import load_config
from konnect_dp.logging.log import init_logging
from konnect_dp.observers.dispatcher import EventBus
from konnect_dp.observers.jsonfile import JsonFileObserver
from konnect_dp.observers.logger import LoggerObserver


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Konnect data plane bootstrap: certificate -> register -> endpoints -> run")

EXIT_CODES_HELP = """
Exit codes:
  0 success
  10 missing KONNECT_TOKEN
  11 control plane not found
  12 certificate registration failed
  13 endpoints fetch failed
  14 docker run failed
"""


def _config_or_exit(config_file: Optional[Path], overrides: dict):
    try:
        return load_config(config_file, overrides)
    except (ValidationError, ValueError, OSError) as exc:
        raise typer.BadParameter(str(exc))


@app.command(epilog=EXIT_CODES_HELP)
def bootstrap(
    cp_name: Optional[str] = typer.Option(None, "--cp-name", help="Control plane name"),
    region: Optional[str] = typer.Option(None, "--region", help="Konnect region (us, eu, au, ...)"),
    image: Optional[str] = typer.Option(None, "--image", help="Data plane image"),
    labels: Optional[str] = typer.Option(None, "--labels", help='Labels, e.g. "created-by:script,env:local"'),
    container_name: Optional[str] = typer.Option(None, "--container-name"),
    ttl_seconds: Optional[int] = typer.Option(
        None,
        "--ttl-seconds",
        help="> 0: remove the container (and certificate with --cleanup-cert) after N seconds",
    ),
    cleanup_cert: Optional[bool] = typer.Option(
        None, "--cleanup-cert/--keep-cert", help="Delete the registered certificate on exit"
    ),
    cert_dir: Optional[Path] = typer.Option(None, "--cert-dir"),
    api_base_url: Optional[str] = typer.Option(None, "--api-base-url"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="YAML file with defaults"),
    token: Optional[str] = typer.Option(
        None, "--token", envvar="KONNECT_TOKEN", show_default=False, help="Konnect token (or KONNECT_TOKEN env)"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose"),
):
    """Provision certificate, register it, fetch endpoints and start the data plane."""
    overrides = {
        "cp_name": cp_name,
        "region": region,
        "image": image,
        "labels": labels,
        "container_name": container_name,
        "ttl_seconds": ttl_seconds,
        "cleanup_cert": cleanup_cert,
        "cert_dir": cert_dir,
        "api_base_url": api_base_url,
        "verbose": verbose or None,
    }
    cfg = _config_or_exit(config_file, overrides)

    logger, run_id, log_path = init_logging(verbose=cfg.verbose)
    logger.debug("config=%s", cfg.model_dump(mode="json"))

    bus = EventBus(
        observers=[
            LoggerObserver(logger),
            JsonFileObserver(log_path.parent, run_id),
        ]
    )

    manager = None
    try:
        manager = LifecycleManager.from_config(cfg, token=token, bus=bus, run_id=run_id)
        manager.run()
    except BootstrapError as exc:
        if manager is None:
            # stage failures are already logged by the manager
            logger.error("%s", exc)
        logger.info("log_file=%s", log_path)
        raise typer.Exit(code=exc.exit_code)
    except KeyboardInterrupt:
        raise typer.Exit(code=INTERRUPTED_EXIT_CODE)


@app.command()
def certs(
    cert_dir: Path = typer.Option(Path("certs"), "--cert-dir"),
    verbose: bool = typer.Option(False, "-v", "--verbose"),
):
    """Create (or reuse) the data plane key/certificate pair; no API calls."""
    init_logging(verbose=verbose)

    try:
        material = CertificateProvider().ensure(cert_dir)
    except BootstrapError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=exc.exit_code)

    typer.echo(f"key : {material.key_path}")
    typer.echo(f"cert: {material.cert_path}")
    window = validity_window(material.certificate)
    if window:
        typer.echo(f"notBefore={window[0].isoformat()}")
        typer.echo(f"notAfter={window[1].isoformat()}")


if __name__ == "__main__":
    app()
