"""Map the host machine type to the Ubuntu architecture name."""

import platform
from typing import Optional

_MACHINE_TO_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "i386",
    "i686": "i386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "armv6l": "armhf",
    "ppc64le": "ppc64el",
    "ppc": "powerpc",
    "s390x": "s390x",
}


def ubuntu_architecture(machine: Optional[str] = None) -> str:
    """Get the Ubuntu architecture identifier for a machine type.

    Args:
        machine: Machine type as reported by uname; defaults to the host's

    Returns:
        Architecture name (e.g. 'amd64'), or the machine type itself if unknown
    """
    if machine is None:
        machine = platform.machine()
    return _MACHINE_TO_ARCH.get(machine.lower(), machine.lower())
