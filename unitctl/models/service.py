"""Data models for systemd service management."""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Optional, Union


class ActiveState(Enum):
    """Enumeration of systemd active states."""

    ACTIVE = "active"
    RELOADING = "reloading"
    INACTIVE = "inactive"
    FAILED = "failed"
    ACTIVATING = "activating"
    DEACTIVATING = "deactivating"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, state_str: str) -> 'ActiveState':
        """Convert a string to ActiveState enum.

        Args:
            state_str: ActiveState value from systemctl

        Returns:
            ActiveState enum value, UNKNOWN if not recognised
        """
        try:
            return cls(state_str.strip().lower())
        except ValueError:
            return cls.UNKNOWN


class RestartCondition(Enum):
    """The restart policies systemd understands for a service."""

    NO = "no"
    ALWAYS = "always"
    ON_SUCCESS = "on-success"
    ON_FAILURE = "on-failure"
    ON_ABNORMAL = "on-abnormal"
    ON_ABORT = "on-abort"
    ON_WATCHDOG = "on-watchdog"

    def __str__(self) -> str:
        return _RESTART_TO_STRING[self]

    @classmethod
    def from_string(cls, value: str) -> 'RestartCondition':
        """Parse the canonical systemd spelling of a restart condition.

        Args:
            value: Restart condition text, e.g. 'on-failure'

        Returns:
            RestartCondition enum value

        Raises:
            ValueError: if the text is not a known restart condition
        """
        try:
            return _STRING_TO_RESTART[value]
        except (KeyError, TypeError):
            raise ValueError(f"Invalid restart condition: {value!r}") from None


_RESTART_TO_STRING: Dict[RestartCondition, str] = {cond: cond.value for cond in RestartCondition}
_STRING_TO_RESTART: Dict[str, RestartCondition] = {text: cond for cond, text in _RESTART_TO_STRING.items()}

if len(_STRING_TO_RESTART) != len(RestartCondition):
    raise RuntimeError("Restart condition spellings are not unique")

SERVICE_TYPES = ("", "simple", "dbus", "forking", "oneshot", "notify")


@dataclass(frozen=True)
class ServiceDescription:
    """Declarative description of a snap application service.

    Attributes:
        snap_name: Name of the snap package
        app_name: Name of the application inside the snap
        version: Snap version string
        revision: Numeric snap revision
        description: Human readable description
        snap_path: Installation path of the snap (e.g. '/apps/app/1.0')
        start: Start command, relative to snap_path
        stop: Optional stop command, relative to snap_path
        post_stop: Optional post-stop command, relative to snap_path
        stop_timeout: Seconds systemd waits for the stop command
        aa_profile: AppArmor profile the launcher confines the app with
        bus_name: D-Bus bus name for 'dbus' services
        type: systemd service type ('simple', 'dbus', ...)
        restart: Restart policy
        udev_app_name: Launcher app tag, defaults to the snap name
    """

    snap_name: str
    app_name: str = ""
    version: str = ""
    revision: int = 0
    description: str = ""
    snap_path: str = ""
    start: str = ""
    stop: str = ""
    post_stop: str = ""
    stop_timeout: float = 0
    aa_profile: str = ""
    bus_name: Optional[str] = None
    type: str = ""
    restart: RestartCondition = RestartCondition.NO
    udev_app_name: str = ""

    def __post_init__(self):
        """Validate service description after initialization."""
        if not self.snap_name:
            raise ValueError("Snap name cannot be empty")

        if self.type not in SERVICE_TYPES:
            raise ValueError(f"Invalid service type: {self.type}. Must be one of {', '.join(SERVICE_TYPES[1:])}")

        if not isinstance(self.restart, RestartCondition):
            raise ValueError(f"Invalid restart condition: {self.restart!r}")

    @property
    def launcher_app_name(self) -> str:
        """Get the app tag passed to the launcher."""
        return self.udev_app_name or self.snap_name

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary representation of the service description
        """
        result = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if field.name == "restart":
                value = str(value)
            if value is None:
                continue
            result[field.name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict) -> 'ServiceDescription':
        """Create ServiceDescription from dictionary.

        Args:
            data: Dictionary with the service description

        Returns:
            ServiceDescription instance
        """
        known = {field.name for field in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown service description keys: {', '.join(sorted(unknown))}")

        values = dict(data)
        if "restart" in values:
            values["restart"] = RestartCondition.from_string(values["restart"])
        if "revision" in values:
            values["revision"] = int(values["revision"])
        if "version" in values:
            # YAML reads 1.0 as a float
            values["version"] = str(values["version"])
        return cls(**values)


_STATUS_PROPERTIES = {
    "Id": "id",
    "LoadState": "load_state",
    "ActiveState": "active_state",
    "SubState": "sub_state",
    "UnitFileState": "unit_file_state",
}

STATUS_PROPERTIES = tuple(_STATUS_PROPERTIES)


@dataclass
class ServiceStatus:
    """Snapshot of a unit's state as reported by systemctl show.

    Attributes:
        service_file_name: Unit name the status was queried for
        id: Unit identifier systemd resolved the name to
        load_state: LoadState property (e.g. 'loaded')
        active_state: ActiveState property (e.g. 'active')
        sub_state: SubState property (e.g. 'running')
        unit_file_state: UnitFileState property (e.g. 'enabled')
    """

    service_file_name: str
    id: str = ""
    load_state: str = ""
    active_state: str = ""
    sub_state: str = ""
    unit_file_state: str = ""

    def __str__(self) -> str:
        return f"{self.unit_file_state}; {self.load_state}; {self.active_state} ({self.sub_state})"


def parse_properties(output: Union[bytes, str]) -> Dict[str, str]:
    """Split systemctl show output into a property dictionary.

    Lines without a '=' are skipped; the first '=' separates key from value.
    """
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")

    properties = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            properties[key.strip()] = value.strip()
    return properties


def parse_status(service_name: str, output: Union[bytes, str]) -> ServiceStatus:
    """Build a ServiceStatus from systemctl show output.

    Unrecognised properties are ignored and missing ones stay empty.

    Args:
        service_name: Name of the unit that was queried
        output: Raw key=value output of systemctl show

    Returns:
        ServiceStatus snapshot
    """
    properties = parse_properties(output)
    values = {attr: properties[key] for key, attr in _STATUS_PROPERTIES.items() if key in properties}
    return ServiceStatus(service_file_name=service_name, **values)
