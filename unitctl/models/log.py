"""Journal log entries."""

import json
import re
from datetime import datetime, timedelta, timezone
from typing import List, Union

from .errors import LogDecodeError

TIMESTAMP_FIELD = "__REALTIME_TIMESTAMP"
MESSAGE_FIELD = "MESSAGE"
IDENTIFIER_FIELD = "SYSLOG_IDENTIFIER"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_DECIMAL = re.compile(r"[+-]?[0-9]+")

# journald timestamps are signed 64-bit microsecond counts
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INT64_DIGITS = len(str(_INT64_MAX))


class Log(dict):
    """A single journal entry, as decoded from journalctl's JSON output."""

    def timestamp(self) -> str:
        """Get the entry's realtime timestamp for display.

        Returns:
            ISO-8601 UTC timestamp with microseconds, or a '-(...)-' marker
            describing why the timestamp could not be used
        """
        if TIMESTAMP_FIELD not in self:
            return "-(no timestamp!)-"

        raw = self[TIMESTAMP_FIELD]
        if not isinstance(raw, str):
            if isinstance(raw, float) and raw.is_integer():
                raw = int(raw)
            return f"-(timestamp not a string: {raw!r})-"

        not_decimal = f"-(timestamp not a decimal number: {json.dumps(raw)})-"
        if not _DECIMAL.fullmatch(raw) or len(raw.lstrip("+-").lstrip("0")) > _INT64_DIGITS:
            return not_decimal

        micros = int(raw)
        if not _INT64_MIN <= micros <= _INT64_MAX:
            return not_decimal
        try:
            when = _EPOCH + timedelta(microseconds=micros)
        except OverflowError:
            return not_decimal
        return when.strftime("%Y-%m-%dT%H:%M:%S.%fZ")

    def message(self) -> str:
        """Get the entry's message, or '-' if it has none."""
        return _display(self.get(MESSAGE_FIELD))

    def identifier(self) -> str:
        """Get the entry's syslog identifier, or '-' if it has none."""
        return _display(self.get(IDENTIFIER_FIELD))

    def __str__(self) -> str:
        return f"{self.timestamp()} {self.identifier()} {self.message()}"


def _display(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        # journald emits non-UTF-8 payloads as byte arrays
        try:
            return bytes(value).decode("utf-8", errors="replace")
        except (TypeError, ValueError):
            pass
    return str(value)


def decode_logs(raw: Union[bytes, str]) -> List[Log]:
    """Decode journalctl JSON output, one entry per line.

    Args:
        raw: Output of journalctl -o json

    Returns:
        Log entries in the order they were received

    Raises:
        LogDecodeError: if any line is not a JSON object
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    logs = []
    for lineno, line in enumerate(raw.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except ValueError as e:
            raise LogDecodeError(line, f"line {lineno}: {e}") from e
        if not isinstance(entry, dict):
            raise LogDecodeError(line, f"line {lineno}: expected a JSON object")
        logs.append(Log(entry))
    return logs
