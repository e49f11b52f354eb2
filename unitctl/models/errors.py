"""Errors raised while talking to systemd."""

from typing import Sequence, Union


class SystemdError(Exception):
    """Base class for unitctl errors."""


class CommandError(SystemdError):
    """An external command (systemctl, journalctl) failed.

    Attributes:
        cmd: Argument list of the failing command
        exit_code: Exit status it returned
        output: Output it captured
    """

    def __init__(self, cmd: Sequence[str], exit_code: int, output: Union[bytes, str] = b""):
        self.cmd = list(cmd)
        self.exit_code = exit_code
        self.output = output
        super().__init__(self.cmd, exit_code, output)

    def __str__(self) -> str:
        output = self.output
        if isinstance(output, bytes):
            output = output.decode("utf-8", errors="replace")
        return f"{self.cmd} failed with exit status {self.exit_code}: {output.strip()}"


class LogDecodeError(CommandError):
    """Journal output could not be decoded into log entries."""

    def __init__(self, line: str, reason: str):
        self.reason = reason
        super().__init__(["journalctl", "-o", "json"], 0, line)

    def __str__(self) -> str:
        return f"cannot decode journal entry ({self.reason}): {self.output!r}"


class Timeout(SystemdError, TimeoutError):
    """A unit did not reach the requested state before the deadline."""

    def __init__(self, action: str, service: str):
        self.action = action
        self.service = service
        super().__init__(f"{service} failed to {action}: timeout")

    def __str__(self) -> str:
        return f"{self.service} failed to {self.action}: timeout"


def is_timeout(err: BaseException) -> bool:
    """Check whether an error is a polling timeout rather than a failure."""
    return isinstance(err, Timeout)
