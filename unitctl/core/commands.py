"""Default command executors backed by systemctl and journalctl."""

import logging
import subprocess
from typing import List, Sequence

from ..models.errors import CommandError
from ..utils.constants import DEFAULT_LOG_LINES

logger = logging.getLogger(__name__)

SYSTEMCTL = "systemctl"
JOURNALCTL = "journalctl"


def _run(cmd: List[str]) -> bytes:
    """Run a command, returning its combined stdout and stderr.

    Raises:
        CommandError: if the command is missing or exits non-zero
    """
    logger.debug(f"Exec: {cmd}")
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except FileNotFoundError as e:
        logger.error(f"{cmd[0]} not found: {e}")
        raise CommandError(cmd, 127, str(e).encode("utf-8")) from e

    if result.returncode != 0:
        logger.debug(f"{cmd} exited with {result.returncode}")
        raise CommandError(cmd, result.returncode, result.stdout)

    return result.stdout


def run_systemctl(args: Sequence[str]) -> bytes:
    """Run systemctl with the given arguments.

    Args:
        args: Arguments after the systemctl binary, e.g. ["stop", "foo"]

    Returns:
        Combined output of the command
    """
    return _run([SYSTEMCTL, *args])


def run_journalctl(service_names: Sequence[str], lines: int = DEFAULT_LOG_LINES) -> bytes:
    """Fetch the most recent journal entries of some units as JSON lines.

    Args:
        service_names: Units whose entries to fetch
        lines: Number of entries to fetch

    Returns:
        One JSON object per line
    """
    cmd = [JOURNALCTL, "-o", "json", "--no-pager", "-n", str(lines)]
    for name in service_names:
        cmd.extend(["-u", name])
    return _run(cmd)
