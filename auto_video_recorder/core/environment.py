"""
Run environment detection.

Detects once per process whether tests are running under CI, inside a
container, or under WSL, and caches the result. The correlation engine never
reads these flags itself; callers use them to pick a settings preset and the
summary report prints them.
"""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .logging_utils import get_module_logger

logger = get_module_logger("Environment")

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RunEnvironment:
    """Immutable description of where the test run is executing.

    Attributes:
        is_ci: True when a CI server variable is present (Jenkins or generic CI).
        is_docker: True when docker mode is requested or a container is detected.
        wsl_distro: WSL distribution name, if any.
        build_number: CI build number, if any.
        job_name: CI job name, if any.
        workspace: CI workspace directory, if any.
        os_name: Platform string (``sys.platform``).
        os_release: OS release string.
        python_version: Interpreter version string.
    """

    is_ci: bool
    is_docker: bool
    wsl_distro: Optional[str]
    build_number: Optional[str]
    job_name: Optional[str]
    workspace: Optional[str]
    os_name: str
    os_release: str
    python_version: str

    @property
    def preset_name(self) -> str:
        return "ci" if self.is_ci else "local"

    def describe(self) -> list[str]:
        lines = [
            f"CI: {'YES' if self.is_ci else 'NO'}",
            f"Docker Mode: {self.is_docker}",
            f"WSL: {self.wsl_distro or 'NO'}",
            f"OS: {self.os_name} {self.os_release}",
            f"Python: {self.python_version}",
        ]
        if self.is_ci:
            lines.append(f"Build Number: {self.build_number or 'N/A'}")
            lines.append(f"Job Name: {self.job_name or 'N/A'}")
            lines.append(f"Workspace: {self.workspace or 'N/A'}")
        return lines

    def __str__(self) -> str:
        mode = "ci" if self.is_ci else "local"
        if self.is_docker:
            mode += "+docker"
        return f"{mode} ({self.os_name}, python {self.python_version})"


def _env_flag(env: Mapping[str, str], key: str) -> bool:
    return env.get(key, "").strip().lower() in _TRUTHY


def _running_in_container() -> bool:
    if Path("/.dockerenv").exists():
        return True
    try:
        with open("/proc/1/cgroup", "r", encoding="utf-8") as fh:
            return "docker" in fh.read()
    except OSError:
        return False


def detect_environment(
    env: Optional[Mapping[str, str]] = None,
    *,
    probe_host: Optional[bool] = None,
) -> RunEnvironment:
    """Inspect ``env`` (defaults to ``os.environ``) and, optionally, the host.

    Host probing (container markers) is on by default only when ``env`` is
    not given. Use get_environment() for the cached instance.
    """
    if probe_host is None:
        probe_host = env is None
    env = os.environ if env is None else env

    is_ci = bool(env.get("JENKINS_URL") or env.get("BUILD_NUMBER") or _env_flag(env, "CI"))
    is_docker = _env_flag(env, "VIDEO_DOCKER_MODE") or (
        probe_host and sys.platform == "linux" and _running_in_container()
    )

    info = RunEnvironment(
        is_ci=is_ci,
        is_docker=is_docker,
        wsl_distro=env.get("WSL_DISTRO_NAME") or None,
        build_number=env.get("BUILD_NUMBER") or None,
        job_name=env.get("JOB_NAME") or None,
        workspace=env.get("WORKSPACE") or None,
        os_name=sys.platform,
        os_release=platform.release(),
        python_version=platform.python_version(),
    )

    logger.debug("Environment detected: %s", info)
    return info


_environment: Optional[RunEnvironment] = None


def get_environment() -> RunEnvironment:
    """Return the cached run environment, detecting it on first use."""
    global _environment
    if _environment is None:
        _environment = detect_environment()
    return _environment


def reset_environment() -> None:
    """Reset the cached environment (for testing only)."""
    global _environment
    _environment = None


__all__ = [
    "RunEnvironment",
    "detect_environment",
    "get_environment",
    "reset_environment",
]
