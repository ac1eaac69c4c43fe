"""
Docker adapter — compose operations behind profile add/remove.

Uses the docker CLI (``docker compose`` v2), never the Docker API.
Services are addressed by container name, which is also the compose
service key in generated compose files.  Named data volumes follow the
compose convention ``<project>_<container>-data``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from kaspa_aio.adapters.base import ServiceManager
from kaspa_aio.core.services.catalog import ProfileCatalog

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = ("no such service", "not found", "no such container")


def run_docker(*args: str, cwd: Path, timeout: int = 60) -> subprocess.CompletedProcess[str]:
    """Run a docker command and return the result."""
    return subprocess.run(
        ["docker", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def run_compose(*args: str, cwd: Path, timeout: int = 120) -> subprocess.CompletedProcess[str]:
    """Run a docker compose command and return the result."""
    return subprocess.run(
        ["docker", "compose", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def _error_text(result: subprocess.CompletedProcess[str], fallback: str) -> str:
    return result.stderr.strip() or result.stdout.strip() or fallback


class DockerManager(ServiceManager):
    """Start and remove profile containers with ``docker compose``.

    Args:
        root:      Installation root (compose working directory).
        project:   Compose project name, used as the volume prefix.
        timeout:   Seconds before a single docker call is abandoned.
        catalog:   Profile catalog for profile → container lookups.
    """

    def __init__(
        self,
        root: Path,
        *,
        project: str = "all-in-one",
        timeout: int = 120,
        catalog: ProfileCatalog | None = None,
    ):
        self.root = root
        self.project = project
        self.timeout = timeout
        self.catalog = catalog or ProfileCatalog()

    @property
    def name(self) -> str:
        return "docker"

    def is_available(self) -> bool:
        if shutil.which("docker") is None:
            return False
        try:
            r = run_docker("info", "--format", "{{.ServerVersion}}", cwd=self.root, timeout=10)
        except (subprocess.TimeoutExpired, OSError):
            return False
        return r.returncode == 0

    # ── Start ────────────────────────────────────────────────────

    def start_services(self, profile_ids: Iterable[str]) -> dict[str, Any]:
        containers = self.catalog.get_container_names(profile_ids)
        if not containers:
            return {"success": False, "error": "No services to start"}

        logger.info("Starting services: %s", ", ".join(containers))
        try:
            r = run_compose("up", "-d", *containers, cwd=self.root, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            return {"success": False, "error": f"Service startup timed out after {self.timeout}s"}
        except OSError as e:
            return {"success": False, "error": f"Cannot run docker: {e}"}

        if r.returncode != 0:
            error = _error_text(r, "Failed to start services")
            logger.error("docker compose up failed: %s", error)
            return {"success": False, "error": error, "services": containers}

        return {"success": True, "services": containers, "output": r.stdout.strip() or r.stderr.strip()}

    # ── Remove ───────────────────────────────────────────────────

    def remove_services(self, container_names: Iterable[str], *, remove_data: bool = False) -> dict[str, Any]:
        names = list(container_names)
        results: list[dict[str, Any]] = []

        for name in names:
            results.append(self._remove_one(name))

        if remove_data:
            for name in names:
                results.append(self._remove_volume(name))

        failed = [r for r in results if not r["success"]]
        result: dict[str, Any] = {
            "success": not failed,
            "results": results,
            "summary": {
                "total": len(names),
                "removed": sum(1 for r in results if r.get("action") == "removed"),
                "not_found": sum(1 for r in results if r.get("action") == "not_found"),
                "failed": len(failed),
                "volumes_removed": sum(1 for r in results if r.get("action") == "volume_removed"),
            },
        }
        if failed:
            result["error"] = "; ".join(f"{r['service']}: {r['error']}" for r in failed)
        return result

    def _remove_one(self, name: str) -> dict[str, Any]:
        try:
            stop = run_compose("stop", name, cwd=self.root, timeout=self.timeout)
            if stop.returncode != 0:
                return self._classify_failure(name, _error_text(stop, f"Failed to stop {name}"))

            rm = run_compose("rm", "-f", name, cwd=self.root, timeout=self.timeout)
            if rm.returncode != 0:
                return self._classify_failure(name, _error_text(rm, f"Failed to remove {name}"))
        except subprocess.TimeoutExpired:
            return {"service": name, "success": False, "error": f"Timed out after {self.timeout}s"}
        except OSError as e:
            return {"service": name, "success": False, "error": f"Cannot run docker: {e}"}

        logger.info("Removed service %s", name)
        return {"service": name, "success": True, "action": "removed"}

    @staticmethod
    def _classify_failure(name: str, error: str) -> dict[str, Any]:
        # A service that is already gone is not a removal failure
        if any(marker in error.lower() for marker in _NOT_FOUND_MARKERS):
            return {"service": name, "success": True, "action": "not_found", "message": "Service was not running"}
        logger.error("Removing %s failed: %s", name, error)
        return {"service": name, "success": False, "error": error}

    def _remove_volume(self, name: str) -> dict[str, Any]:
        volume = f"{self.project}_{name}-data"
        try:
            r = run_docker("volume", "rm", volume, cwd=self.root, timeout=self.timeout)
        except (subprocess.TimeoutExpired, OSError) as e:
            return {"service": name, "success": False, "error": f"Volume removal failed: {e}"}

        if r.returncode == 0:
            logger.info("Removed volume %s", volume)
            return {"service": name, "success": True, "action": "volume_removed", "volume": volume}
        return {
            "service": name,
            "success": True,
            "action": "volume_not_found",
            "volume": volume,
            "message": "No volume to remove",
        }
