"""Rendering of systemd service and mount unit files."""

import posixpath
from pathlib import Path
from typing import List, Optional, Tuple

from ..models.service import ServiceDescription
from ..utils.arch import ubuntu_architecture
from ..utils.constants import (
    APPS_DATA_DIR,
    APPS_HOME_DIR,
    FRAMEWORKS_TARGET,
    INSTALL_TARGET,
    LAUNCHER,
    LIB_GL_DIR,
)

# Optional [Service] lines render as blank lines when unset.
SERVICE_TEMPLATE = """[Unit]
Description={description}
After={frameworks_target}
Requires={frameworks_target}
X-Snappy=yes

[Service]
ExecStart={exec_start}
Restart={restart}
WorkingDirectory={data_dir}
Environment={environment}
{exec_stop}
{exec_stop_post}
{timeout_stop}
{type}
{bus_name}

[Install]
WantedBy={install_target}
"""

MOUNT_TEMPLATE = """[Unit]
Description=Squashfs mount unit for {name}

[Mount]
What={what}
Where={where}

[Install]
WantedBy={install_target}
"""


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _format_seconds(seconds: float) -> str:
    # Plain decimal at microsecond resolution, never exponent notation
    if float(seconds).is_integer():
        return str(int(seconds))
    return f"{seconds:.6f}".rstrip("0").rstrip(".")


def data_dirs(desc: ServiceDescription) -> Tuple[str, str]:
    """Get the (versioned, shared) data directories of a snap."""
    base = posixpath.join(APPS_DATA_DIR, desc.snap_name)
    return posixpath.join(base, desc.version), posixpath.join(base, "shared")


def user_data_dirs(desc: ServiceDescription) -> Tuple[str, str]:
    """Get the (versioned, shared) per-user data directories of a snap."""
    base = posixpath.join(APPS_HOME_DIR, desc.snap_name)
    return posixpath.join(base, desc.version), posixpath.join(base, "shared")


def environment(desc: ServiceDescription, arch: Optional[str] = None) -> List[Tuple[str, str]]:
    """Get the environment a snap service runs with, in unit file order.

    Args:
        desc: Service description
        arch: Ubuntu architecture name, defaults to the host's

    Returns:
        List of (name, value) pairs
    """
    data_dir, shared_data_dir = data_dirs(desc)
    user_data_dir, user_shared_data_dir = user_data_dirs(desc)
    return [
        ("SNAP", desc.snap_path),
        ("SNAP_DATA", data_dir),
        ("SNAP_SHARED_DATA", shared_data_dir),
        ("SNAP_NAME", desc.snap_name),
        ("SNAP_VERSION", desc.version),
        ("SNAP_REVISION", str(desc.revision)),
        ("SNAP_ARCH", arch or ubuntu_architecture()),
        ("SNAP_LIBRARY_PATH", f"{LIB_GL_DIR}:"),
        ("SNAP_USER_DATA", user_data_dir),
        ("SNAP_USER_SHARED_DATA", user_shared_data_dir),
    ]


def launcher_command(desc: ServiceDescription, command: str) -> str:
    """Wrap a snap command with the confinement launcher."""
    return f"{LAUNCHER} {desc.launcher_app_name} {desc.aa_profile} {desc.snap_path}/{command}"


def render_service_file(desc: ServiceDescription, arch: Optional[str] = None) -> str:
    """Render the unit file text for a snap service.

    Args:
        desc: Service description
        arch: Ubuntu architecture name, defaults to the host's

    Returns:
        Unit file contents
    """
    data_dir, _ = data_dirs(desc)
    env = " ".join(_quote(f"{name}={value}") for name, value in environment(desc, arch))

    return SERVICE_TEMPLATE.format(
        description=desc.description,
        frameworks_target=FRAMEWORKS_TARGET,
        exec_start=launcher_command(desc, desc.start),
        restart=str(desc.restart),
        data_dir=data_dir,
        environment=env,
        exec_stop=f"ExecStop={launcher_command(desc, desc.stop)}" if desc.stop else "",
        exec_stop_post=f"ExecStopPost={launcher_command(desc, desc.post_stop)}" if desc.post_stop else "",
        timeout_stop=f"TimeoutStopSec={_format_seconds(desc.stop_timeout)}" if desc.stop_timeout else "",
        type=f"Type={desc.type}" if desc.type else "",
        bus_name=f"BusName={desc.bus_name}" if desc.bus_name else "",
        install_target=INSTALL_TARGET,
    )


def service_file_name(desc: ServiceDescription) -> str:
    """Get the unit file name of a snap service, e.g. 'app_service_1.0.service'."""
    return f"{desc.snap_name}_{desc.app_name}_{desc.version}.service"


def render_mount_unit(name: str, what: str, where: str) -> str:
    """Render the unit file text mounting a snap's squashfs image.

    Args:
        name: Snap name, used in the description
        what: Path of the squashfs image
        where: Mount point

    Returns:
        Unit file contents
    """
    return MOUNT_TEMPLATE.format(name=name, what=what, where=where, install_target=INSTALL_TARGET)


def mount_unit_name(where: str, suffix: str = "mount") -> str:
    """Derive a unit file name from a mount point.

    '/apps/hello/1.1' becomes 'apps-hello-1.1.mount'.
    """
    escaped = where.strip("/").replace("/", "-")
    return f"{escaped}.{suffix}"


def mount_unit_path(services_dir: Path, where: str, suffix: str = "mount") -> Path:
    """Get the full path of the unit file for a mount point."""
    return Path(services_dir) / mount_unit_name(where, suffix)
