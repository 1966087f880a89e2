"""
Install/progress event handling.

While the host installs the database engine it streams events: plain text
lines, step records ``{message, step, total_steps, is_error}`` and download
records ``{bytes_downloaded, total_bytes, percentage}``. This module parses
those payloads and keeps a bounded log of them for display.

Invariants
----------
- The log keeps at most `capacity` lines; the oldest line is evicted first.
- Download progress is tracked as the latest value, not appended per event.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterator, Mapping, Union

from .errors import HostEventError

DEFAULT_LOG_CAPACITY = 500


@dataclass(frozen=True, slots=True)
class InstallStep:
    """One numbered installation step."""

    message: str
    step: int
    total_steps: int | None = None
    is_error: bool = False


@dataclass(frozen=True, slots=True)
class DownloadProgress:
    """Progress of the installer download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float

    @property
    def complete(self) -> bool:
        return self.total_bytes > 0 and self.bytes_downloaded >= self.total_bytes


InstallEvent = Union[str, InstallStep, DownloadProgress]


class LogBuffer:
    """
    Ordered log lines with a fixed capacity.

    Parameters
    ----------
    capacity:
        Maximum number of lines kept. Must be positive.
    """

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive.")
        self._lines: deque[str] = deque(maxlen=capacity)
        self._evicted = 0

    @property
    def capacity(self) -> int:
        return self._lines.maxlen or 0

    @property
    def evicted(self) -> int:
        """Number of lines dropped because the buffer was full."""
        return self._evicted

    def append(self, line: str) -> None:
        if len(self._lines) == self.capacity:
            self._evicted += 1
        self._lines.append(line)

    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def clear(self) -> None:
        self._lines.clear()
        self._evicted = 0

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._lines))


def parse_install_event(payload: object) -> InstallEvent:
    """
    Parse one event payload from the host.

    Parameters
    ----------
    payload:
        A text line, or a mapping shaped like a step or download record.

    Returns
    -------
    InstallEvent
        The parsed event.

    Raises
    ------
    HostEventError
        If the payload shape is not recognized.
    """
    if isinstance(payload, str):
        return payload
    if isinstance(payload, (InstallStep, DownloadProgress)):
        return payload
    if not isinstance(payload, Mapping):
        raise HostEventError(f"Unsupported event payload type: {type(payload).__name__}")

    try:
        if "bytes_downloaded" in payload:
            return DownloadProgress(
                bytes_downloaded=int(payload["bytes_downloaded"]),
                total_bytes=int(payload.get("total_bytes", 0)),
                percentage=float(payload.get("percentage", 0.0)),
            )
        if "message" in payload:
            total = payload.get("total_steps")
            return InstallStep(
                message=str(payload["message"]),
                step=int(payload.get("step", 0)),
                total_steps=None if total is None else int(total),
                is_error=bool(payload.get("is_error", False)),
            )
    except (TypeError, ValueError) as exc:
        raise HostEventError(f"Malformed event payload: {exc}") from exc

    raise HostEventError(f"Unrecognized event payload keys: {sorted(map(str, payload))}")


def _megabytes(value: int) -> str:
    return f"{value / (1024 * 1024):.1f}"


def describe_install_event(event: InstallEvent) -> str:
    """Render an event as one log line."""
    if isinstance(event, DownloadProgress):
        return (
            f"Downloaded {_megabytes(event.bytes_downloaded)} of "
            f"{_megabytes(event.total_bytes)} MB ({event.percentage:.1f}%)"
        )
    if isinstance(event, InstallStep):
        prefix = f"[Step {event.step}/{event.total_steps}]" if event.total_steps else f"[Step {event.step}]"
        marker = " ERROR:" if event.is_error else ""
        return f"{prefix}{marker} {event.message}"
    return event.rstrip("\r\n")


class InstallMonitor:
    """Collects install events into a bounded log plus progress state."""

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        self.log = LogBuffer(capacity)
        self.download: DownloadProgress | None = None
        self.current_step: InstallStep | None = None
        self.failed = False

    def handle(self, payload: object, is_error: bool = False) -> InstallEvent:
        """
        Record one event.

        Parameters
        ----------
        payload:
            Raw event payload.
        is_error:
            True if the host delivered the payload on its error channel.
        """
        event = parse_install_event(payload)
        if isinstance(event, DownloadProgress):
            self.download = event
            if event.complete:
                self.log.append(describe_install_event(event))
            return event

        if isinstance(event, InstallStep):
            self.current_step = event
            self.failed = self.failed or event.is_error
            self.log.append(describe_install_event(event))
            return event

        line = describe_install_event(event)
        if is_error:
            self.failed = True
            line = f"ERROR: {line}"
        self.log.append(line)
        return event

    def reset(self) -> None:
        self.log.clear()
        self.download = None
        self.current_step = None
        self.failed = False
