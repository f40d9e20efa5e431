"""
Cross-platform system helpers.

Provides platform detection, the platform-specific ping command line
and discovery of the DNS servers the OS is currently configured with.
"""

import logging
import math
import os
import platform
import re
import subprocess
from typing import Optional


logger = logging.getLogger(__name__)

_IPV4_RE = re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b")


def get_platform() -> str:
    """Get the current platform name."""
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    return system  # "windows" or "linux"


def check_elevated_privileges() -> bool:
    """Check if running with elevated privileges."""
    system = get_platform()

    if system == "windows":
        try:
            import ctypes
            return ctypes.windll.shell32.IsUserAnAdmin() != 0
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0


def ping_command(ip: str, timeout: float, system: Optional[str] = None) -> list[str]:
    """
    Build the argv for a single ICMP echo request.

    Args:
        ip: Target address
        timeout: Reply wait in seconds
        system: Platform override (defaults to the running platform)

    Returns:
        Command line suitable for asyncio.create_subprocess_exec
    """
    system = system or get_platform()
    timeout_ms = max(1, int(timeout * 1000))

    if system == "windows":
        return ["ping", "-n", "1", "-w", str(timeout_ms), ip]
    if system == "macos":
        # BSD ping takes the wait in milliseconds
        return ["ping", "-c", "1", "-W", str(timeout_ms), ip]
    # iputils ping takes whole seconds
    return ["ping", "-c", "1", "-W", str(max(1, math.ceil(timeout))), ip]


def get_system_dns_servers() -> list[str]:
    """
    Get the currently configured system DNS servers.

    Returns:
        List of DNS server IPs, in the order the OS reports them
    """
    system = get_platform()
    servers: list[str] = []

    if system == "windows":
        try:
            result = subprocess.run(
                ["netsh", "interface", "ip", "show", "dns"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Could not query netsh for DNS servers: %s", e)
            return []
        for line in result.stdout.splitlines():
            servers.extend(_IPV4_RE.findall(line))

    else:
        try:
            with open("/etc/resolv.conf", "r") as f:
                for line in f:
                    if line.strip().startswith("nameserver"):
                        match = _IPV4_RE.search(line)
                        if match:
                            servers.append(match.group())
        except OSError as e:
            logger.debug("Could not read /etc/resolv.conf: %s", e)

    # Remove duplicates, keep order
    return list(dict.fromkeys(servers))
