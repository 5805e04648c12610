"""
Environment probing: shell, versions, package managers.

Everything here fails soft. A probe that cannot answer returns an empty or
explanatory value instead of aborting the run.
"""

import os
import platform
import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import psutil
from loguru import logger

KNOWN_SHELLS: Tuple[str, ...] = (
    "bash", "sh", "zsh", "powershell", "cmd", "fish", "tcsh", "csh", "ksh", "dash",
)

PACKAGE_MANAGERS: Tuple[str, ...] = (
    "pip", "conda", "npm", "yarn", "gem", "apt", "dnf", "yum", "pacman", "zypper", "brew", "choco", "scoop",
)

VERSION_TIMEOUT = 5


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """Facts about the invoking environment, computed once per run."""
    shell: str
    shell_version: str
    os: str
    arch: str
    working_directory: str
    package_managers: Tuple[str, ...] = ()
    sudo_available: bool = False

    @property
    def system_info(self) -> str:
        return f"operating system: {self.os}\nplatform: {self.arch}\n"


def normalize_process_name(name: str) -> str:
    """Lower-case a process name and drop the executable suffix and login-shell dash."""
    name = (name or "").strip().lower()
    if name.endswith(".exe"):
        name = name[:-4]
    return name.lstrip("-")


def detect_shell(
    start_pid: Optional[int] = None,
    process_factory: Callable[[int], "psutil.Process"] = psutil.Process
) -> str:
    """
    Walk up the parent-process chain and return the first known shell.

    Args:
        start_pid: First PID to inspect (defaults to our parent)
        process_factory: Builds a process handle from a PID

    Returns:
        Shell name, or "" when none is found or the chain breaks
    """
    pid = os.getppid() if start_pid is None else start_pid
    seen = set()

    while pid and pid not in seen:
        seen.add(pid)
        try:
            process = process_factory(pid)
            name = normalize_process_name(process.name())
            if name in KNOWN_SHELLS:
                logger.debug(f"Detected shell {name!r} at pid {pid}")
                return name
            pid = process.ppid()
        except (psutil.Error, OSError) as e:
            logger.debug(f"Stopped walking process chain at pid {pid}: {e}")
            break

    logger.debug("No known shell found in process chain")
    return ""


def get_shell_version(shell: str, runner: Callable = subprocess.run) -> str:
    """Ask the shell for its version string."""
    if not shell:
        return ""

    if shell == "powershell":
        cmd = [shell, "-Command", "$PSVersionTable.PSVersion"]
        failure = "Error getting PowerShell version"
    else:
        cmd = [shell, "--version"]
        failure = "Error getting shell version"

    try:
        result = runner(cmd, capture_output=True, text=True, timeout=VERSION_TIMEOUT)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Version query failed for {shell}: {e}")
        return failure

    if result.returncode != 0:
        logger.debug(f"Version query for {shell} exited with {result.returncode}")
        return failure
    return (result.stdout or "").strip()


def get_working_directory() -> str:
    try:
        return os.getcwd()
    except OSError as e:
        logger.debug(f"Cannot read working directory: {e}")
        return ""


def get_package_managers(which: Callable[[str], Optional[str]] = shutil.which) -> Tuple[str, ...]:
    """Package managers on PATH, in candidate-list order."""
    return tuple(pm for pm in PACKAGE_MANAGERS if which(pm))


def sudo_available(which: Callable[[str], Optional[str]] = shutil.which) -> bool:
    return which("sudo") is not None


def probe(shell: Optional[str] = None) -> EnvironmentSnapshot:
    """
    Build the environment snapshot for this run.

    Args:
        shell: Already-detected shell; detected here when omitted

    Returns:
        EnvironmentSnapshot
    """
    if shell is None:
        shell = detect_shell()

    snapshot = EnvironmentSnapshot(
        shell=shell,
        shell_version=get_shell_version(shell),
        os=platform.system().lower(),
        arch=platform.machine().lower(),
        working_directory=get_working_directory(),
        package_managers=get_package_managers(),
        sudo_available=sudo_available(),
    )
    logger.debug(f"Environment: {snapshot}")
    return snapshot
