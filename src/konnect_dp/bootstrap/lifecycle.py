# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/bootstrap/lifecycle.py

from __future__ import annotations

import logging
import signal
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Iterator, Optional

from konnect_dp.bootstrap.certs.provider import CertificateProvider
from konnect_dp.bootstrap.certs.registrar import CertificateRegistrar
from konnect_dp.bootstrap.control_plane import ControlPlaneResolver
from konnect_dp.bootstrap.endpoints import EndpointResolver
from konnect_dp.bootstrap.errors import (
    BootstrapError,
    MissingCredentialError,
    ProcessLaunchError,
)
from konnect_dp.bootstrap.launcher import ProcessLauncher, build_node_environment
from konnect_dp.bootstrap.models import BootstrapContext, BootstrapState
from konnect_dp.config.models import BootstrapConfig
from konnect_dp.konnect.client import KonnectAPIError, KonnectClient
from konnect_dp.observers.dispatcher import EventBus
from konnect_dp.observers.events import (
    BootstrapSummary,
    CleanupPerformed,
    StageFailed,
    StageStarted,
    StageSucceeded,
    new_ctx,
)

log = logging.getLogger("konnect_dp")

Stage = Callable[[BootstrapContext], BootstrapContext]

INTERRUPTED_EXIT_CODE = 130


@contextmanager
def _sigterm_as_interrupt() -> Iterator[None]:
    """Turn SIGTERM into KeyboardInterrupt so the cleanup region still runs."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):
        raise KeyboardInterrupt(f"received signal {signum}")

    previous = signal.signal(signal.SIGTERM, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


class LifecycleManager:
    """
    Runs the bootstrap pipeline:

        Init -> CertReady -> CPResolved -> CertRegistered
             -> EndpointsResolved -> ProcessRunning -> (TTL wait) -> Done

    Any stage error moves the run to Failing with that stage's exit code.
    Cleanup (certificate revocation, container removal) runs on every exit
    path and never raises.
    """

    def __init__(
        self,
        *,
        config: BootstrapConfig,
        client: KonnectClient,
        provider: Optional[CertificateProvider] = None,
        resolver: Optional[ControlPlaneResolver] = None,
        registrar: Optional[CertificateRegistrar] = None,
        endpoint_resolver: Optional[EndpointResolver] = None,
        launcher: Optional[ProcessLauncher] = None,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.client = client
        self.provider = provider or CertificateProvider()
        self.resolver = resolver or ControlPlaneResolver(client, page_size=config.page_size)
        self.registrar = registrar or CertificateRegistrar(client)
        self.endpoint_resolver = endpoint_resolver or EndpointResolver(client)
        self.launcher = launcher or ProcessLauncher(log_follow_seconds=config.log_follow_seconds)
        self.bus = bus or EventBus()
        self._sleep = sleep
        self.run_id = run_id or str(uuid.uuid4())

        self.context = BootstrapContext()

    @classmethod
    def from_config(
        cls,
        config: BootstrapConfig,
        *,
        token: Optional[str],
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ) -> "LifecycleManager":
        """Build the manager and its API client; the token is checked first."""
        if not token or not token.strip():
            raise MissingCredentialError("KONNECT_TOKEN not set")

        client = KonnectClient(
            base_url=config.base_url,
            token=token.strip(),
            timeout=config.request_timeout,
        )
        return cls(config=config, client=client, bus=bus, run_id=run_id)

    @property
    def state(self) -> BootstrapState:
        return self.context.state

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------
    def run(self) -> BootstrapContext:
        self.context = BootstrapContext()

        try:
            with _sigterm_as_interrupt():
                self._stage("certificate", self._ensure_certificate)
                self._stage("control_plane", self._resolve_control_plane)
                self._stage("registration", self._register_certificate)
                self._stage("endpoints", self._fetch_endpoints)
                self._stage("launch", self._launch_process)

                log.info(
                    "Done. Container: %s (image %s)",
                    self.config.container_name,
                    self.config.image,
                )
                if self.config.ttl_seconds > 0:
                    log.info(
                        "Sleeping %d seconds before auto cleanup...",
                        self.config.ttl_seconds,
                    )
                    self._sleep(self.config.ttl_seconds)

                self.context = replace(self.context, state=BootstrapState.DONE)
        except BootstrapError as exc:
            self.context = replace(
                self.context,
                state=BootstrapState.FAILING,
                exit_code=exc.exit_code,
            )
            raise
        except KeyboardInterrupt:
            log.warning("Interrupted; running cleanup")
            self.context = replace(
                self.context,
                state=BootstrapState.FAILING,
                exit_code=INTERRUPTED_EXIT_CODE,
            )
            raise
        finally:
            self.cleanup()
            self._summary()

        return self.context

    def _stage(self, name: str, fn: Stage) -> None:
        self._emit(StageStarted, stage=name)
        try:
            self.context = fn(self.context)
        except BootstrapError as exc:
            log.error("%s", exc)
            self._emit(StageFailed, stage=name, exit_code=exc.exit_code, error=str(exc))
            raise
        self._emit(StageSucceeded, stage=name, state=self.context.state.value)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _ensure_certificate(self, ctx: BootstrapContext) -> BootstrapContext:
        material = self.provider.ensure(self.config.cert_dir)
        return replace(ctx, material=material, state=BootstrapState.CERT_READY)

    def _resolve_control_plane(self, ctx: BootstrapContext) -> BootstrapContext:
        identity = self.resolver.resolve(self.config.cp_name)
        return replace(ctx, identity=identity, state=BootstrapState.CP_RESOLVED)

    def _register_certificate(self, ctx: BootstrapContext) -> BootstrapContext:
        certificate = self.registrar.register(ctx.identity, ctx.material)
        return replace(ctx, certificate=certificate, state=BootstrapState.CERT_REGISTERED)

    def _fetch_endpoints(self, ctx: BootstrapContext) -> BootstrapContext:
        endpoints = self.endpoint_resolver.fetch(ctx.identity)
        return replace(ctx, endpoints=endpoints, state=BootstrapState.ENDPOINTS_RESOLVED)

    def _launch_process(self, ctx: BootstrapContext) -> BootstrapContext:
        try:
            env = build_node_environment(
                material=ctx.material,
                endpoints=ctx.endpoints,
                labels=self.config.label_string,
            )
        except UnicodeDecodeError as exc:
            raise ProcessLaunchError(f"Key material is not valid UTF-8 text: {exc}") from exc
        # cleanup must see the attempt even if launch raises
        self.context = ctx = replace(ctx, launch_attempted=True)
        process = self.launcher.launch(
            self.config.container_name,
            self.config.image,
            self.config.ports,
            env,
        )
        return replace(ctx, process=process, state=BootstrapState.PROCESS_RUNNING)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------
    def cleanup(self) -> None:
        ctx = self.context

        if self.config.cleanup_cert and ctx.certificate is not None:
            cert = ctx.certificate
            log.info("Deleting certificate %s", cert.id)
            error = None
            try:
                self.client.delete_dp_client_certificate(cert.control_plane_id, cert.id)
            except KonnectAPIError as exc:
                error = str(exc)
                log.warning("Certificate %s could not be deleted: %s", cert.id, exc)
            self._emit(
                CleanupPerformed,
                action="revoke_certificate",
                target=cert.id,
                ok=error is None,
                error=error,
            )

        if self.config.ttl_seconds > 0 and ctx.launch_attempted:
            name = self.config.container_name
            if self.launcher.exists(name):
                log.info("TTL set: removing container %s", name)
                removed = self.launcher.remove(name)
                if not removed:
                    log.warning("Container %s could not be removed", name)
            else:
                log.info("Container %s already gone", name)
                removed = True
            self._emit(
                CleanupPerformed,
                action="remove_process",
                target=name,
                ok=removed,
                error=None if removed else "docker rm failed",
            )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def _summary(self) -> None:
        ok = self.context.state is BootstrapState.DONE
        self._emit(
            BootstrapSummary,
            status="OK" if ok else "FAILED",
            state=self.context.state.value,
            exit_code=self.context.exit_code,
        )

    def _emit(self, event_cls, **fields) -> None:
        ctx = new_ctx(self.config.cp_name, self.config.container_name, run_id=self.run_id)
        self.bus.emit(event_cls(**{**ctx, **fields}))
