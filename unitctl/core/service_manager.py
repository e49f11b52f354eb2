"""Service manager for controlling systemd units via systemctl."""

import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..models.errors import CommandError, Timeout
from ..models.log import Log, decode_logs
from ..models.service import ActiveState, ServiceDescription, ServiceStatus, STATUS_PROPERTIES, parse_properties, parse_status
from ..utils.constants import SERVICES_DIR
from . import unit_files
from .commands import run_journalctl, run_systemctl
from .stop_waiter import StopPhase, StopPolicy, StopWaiter

logger = logging.getLogger(__name__)

Executor = Callable[[Sequence[str]], bytes]
LogQuery = Callable[[Sequence[str]], bytes]


class ServiceManager:
    """Manages systemd units via systemctl commands.

    Every operation talks to systemd afresh; nothing about unit state is
    cached between calls.
    """

    def __init__(
        self,
        root_dir: str = "",
        notifier=None,
        executor: Executor = run_systemctl,
        log_query: LogQuery = run_journalctl,
        stop_policy: Optional[StopPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the service manager.

        Args:
            root_dir: Alternate root directory for enable/disable and unit files
            notifier: Optional object with a notify(message) method for progress messages
            executor: Runs systemctl with an argument list, raising CommandError on failure
            log_query: Fetches journal JSON lines for a list of units
            stop_policy: Polling cadence used by stop()
            sleep: Sleep function used between stop polls
            clock: Monotonic clock used for the stop deadline
        """
        self.root_dir = root_dir
        self.notifier = notifier
        self.executor = executor
        self.log_query = log_query
        self.stop_policy = stop_policy or StopPolicy()
        self._sleep = sleep
        self._clock = clock

    @property
    def services_dir(self) -> Path:
        """Directory unit files are written to, below the root directory."""
        return Path(self.root_dir or "/") / SERVICES_DIR.lstrip("/")

    def _systemctl(self, *args: str) -> bytes:
        logger.debug(f"systemctl {' '.join(args)}")
        return self.executor(list(args))

    def _notify(self, message: str):
        if self.notifier is not None:
            self.notifier.notify(message)
        else:
            logger.info(message)

    def daemon_reload(self):
        """Reload systemd's unit definitions."""
        self._systemctl("daemon-reload")
        logger.info("Reloaded systemd manager configuration")

    def start(self, service_name: str):
        """Start a unit.

        Args:
            service_name: Name of the unit
        """
        self._systemctl("start", service_name)
        logger.info(f"Started {service_name}")

    def kill(self, service_name: str, signal: str):
        """Send a signal to the processes of a unit.

        Args:
            service_name: Name of the unit
            signal: Signal name, e.g. 'HUP'
        """
        self._systemctl("kill", service_name, "-s", signal)
        logger.info(f"Sent SIG{signal} to {service_name}")

    def enable(self, service_name: str):
        """Enable a unit to start on boot.

        Args:
            service_name: Name of the unit
        """
        self._systemctl(*self._root_args(), "enable", service_name)
        logger.info(f"Enabled {service_name}")

    def disable(self, service_name: str):
        """Disable a unit from starting on boot.

        Args:
            service_name: Name of the unit
        """
        self._systemctl(*self._root_args(), "disable", service_name)
        logger.info(f"Disabled {service_name}")

    def _root_args(self) -> List[str]:
        if self.root_dir:
            return ["--root", self.root_dir]
        return []

    def stop(self, service_name: str, timeout: float):
        """Stop a unit and wait until systemd reports it stopped.

        Args:
            service_name: Name of the unit
            timeout: Seconds to wait for the unit to stop

        Raises:
            CommandError: if the stop command or a status query fails
            Timeout: if the unit is still stopping when the timeout elapses
        """
        self._systemctl("stop", service_name)

        waiter = StopWaiter(service_name, timeout, self.stop_policy, notify=self._notify, clock=self._clock)
        waiter.begin()

        while True:
            try:
                state = self._active_state(service_name)
            except CommandError:
                waiter.fail()
                raise

            phase = waiter.observe(state)
            if phase is StopPhase.CONVERGED:
                logger.info(f"Stopped {service_name}")
                return
            if phase is StopPhase.TIMED_OUT:
                logger.error(f"Timeout while waiting for {service_name} to stop")
                raise Timeout("stop", service_name)

            self._sleep(waiter.delay)

    def _active_state(self, service_name: str) -> ActiveState:
        output = self._systemctl("show", "--property=ActiveState", service_name)
        return ActiveState.from_string(parse_properties(output).get("ActiveState", ""))

    def restart(self, service_name: str, timeout: float):
        """Stop and then start a unit.

        Args:
            service_name: Name of the unit
            timeout: Seconds to wait for the unit to stop

        Raises:
            CommandError: if stopping or starting fails
            Timeout: if the unit does not stop in time; it is not started then
        """
        self.stop(service_name, timeout)
        self.start(service_name)

    def service_status(self, service_name: str) -> ServiceStatus:
        """Get the current status of a unit.

        Args:
            service_name: Name of the unit

        Returns:
            ServiceStatus snapshot
        """
        output = self._systemctl("show", f"--property={','.join(STATUS_PROPERTIES)}", service_name)
        return parse_status(service_name, output)

    def status(self, service_name: str) -> str:
        """Get a one-line summary of a unit's status.

        Returns:
            Summary such as 'enabled; loaded; active (running)'
        """
        return str(self.service_status(service_name))

    def logs(self, service_names: Sequence[str]) -> List[Log]:
        """Get recent journal entries for some units.

        Args:
            service_names: Names of the units

        Returns:
            Log entries in journal order

        Raises:
            CommandError: if the journal query fails
            LogDecodeError: if the journal output is malformed
        """
        raw = self.log_query(list(service_names))
        return decode_logs(raw)

    def gen_service_file(self, desc: ServiceDescription) -> str:
        """Render the unit file for a service description."""
        return unit_files.render_service_file(desc)

    def write_service_file(self, desc: ServiceDescription) -> Path:
        """Write the unit file for a service description.

        Returns:
            Path of the written unit file
        """
        path = self.services_dir / unit_files.service_file_name(desc)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.gen_service_file(desc))
        logger.info(f"Wrote service unit {path}")
        return path

    def gen_mount_unit(self, name: str, what: str, where: str) -> str:
        """Render the mount unit for a snap's squashfs image."""
        return unit_files.render_mount_unit(name, what, where)

    def write_mount_unit_file(self, name: str, what: str, where: str) -> str:
        """Write the mount unit for a snap's squashfs image.

        Args:
            name: Snap name
            what: Path of the squashfs image
            where: Mount point

        Returns:
            File name of the written unit, relative to services_dir
        """
        path = unit_files.mount_unit_path(self.services_dir, where)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.gen_mount_unit(name, what, where))
        logger.info(f"Wrote mount unit {path}")
        return path.name
