# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/konnect_dp/docker/cli_runner.py

from __future__ import annotations

import logging
import os
import subprocess
import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .errors import DockerError

log = logging.getLogger("konnect_dp")


class DockerCliRunner:
    """
    A pragmatic wrapper around the `docker` CLI.
    - Mirrors human CLI usage: 'rm -f', 'run -d', 'inspect', 'logs -f'.
    - Testable by mocking subprocess.run / subprocess.Popen.
    """

    def __init__(self, docker_bin: str = "docker"):
        self.docker_bin = docker_bin

    # ------------------------- internal helpers -------------------------

    def _base(self) -> list[str]:
        return [self.docker_bin]

    def _run(
        self,
        argv: List[str],
        *,
        env: Optional[Dict[str, str]] = None,
        allow_rc: set[int] | None = None,
    ) -> subprocess.CompletedProcess:
        allow_rc = allow_rc or {0}
        try:
            cp = subprocess.run(
                argv,
                check=False,
                text=True,
                capture_output=True,
                env=env,
            )
        except OSError as exc:
            raise DockerError(f"could not execute {argv[0]!r}: {exc}") from exc

        if cp.returncode not in allow_rc:
            stderr = (cp.stderr or "").strip()
            raise DockerError(f"docker failed (rc={cp.returncode}) for {argv[:2]!r}\n{stderr}")
        return cp

    # ------------------------- commands -------------------------

    def remove(self, name: str) -> bool:
        """`docker rm -f <name>`; True when something was removed."""
        try:
            self._run(self._base() + ["rm", "-f", name])
        except DockerError as exc:
            log.debug("docker rm -f %s: %s", name, exc)
            return False
        return True

    def run_detached(
        self,
        *,
        name: str,
        image: str,
        env: Dict[str, str],
        ports: Iterable[Tuple[int, int]],
    ) -> str:
        """
        Start a detached container and return its id.

        Environment values are handed over through the child's environment
        and referenced by name only, so certificates and keys never show up
        in the process list.
        """
        argv = self._base() + ["run", "-d", "--name", name]
        for key in env:
            argv += ["-e", key]
        for host_port, container_port in ports:
            argv += ["-p", f"{host_port}:{container_port}"]
        argv.append(image)

        log.debug("$ %s", " ".join(argv))
        cp = self._run(argv, env={**os.environ, **env})
        return (cp.stdout or "").strip()

    def state(self, name: str) -> str:
        """Container status ("running", "exited", ...) or "" when absent."""
        try:
            cp = self._run(self._base() + ["inspect", "-f", "{{.State.Status}}", name])
        except DockerError:
            return ""
        return (cp.stdout or "").strip()

    def exists(self, name: str) -> bool:
        return bool(self.state(name))

    def follow_logs(
        self,
        name: str,
        *,
        window_s: float = 30,
        max_lines: int = 200,
        sink: Callable[[str], None] = print,
    ) -> int:
        """
        Follow `docker logs -f` for at most `window_s` seconds / `max_lines`
        lines, then kill the follower. Returns the number of lines forwarded.
        """
        argv = self._base() + ["logs", "-f", name]
        try:
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as exc:
            raise DockerError(f"could not execute {argv[0]!r}: {exc}") from exc

        forwarded = 0

        def _pump() -> None:
            nonlocal forwarded
            for line in proc.stdout:
                sink(line.rstrip("\n"))
                forwarded += 1
                if forwarded >= max_lines:
                    break

        reader = threading.Thread(target=_pump, name=f"docker-logs-{name}", daemon=True)
        try:
            reader.start()
            reader.join(timeout=window_s)
        finally:
            # the follower never outlives this call, interrupted or not
            if proc.poll() is None:
                proc.kill()
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                log.debug("docker logs follower for %s did not exit after kill", name)
        reader.join(timeout=1)
        return forwarded
