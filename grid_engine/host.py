"""
Engine lifecycle boundary.

The host process checks whether the database engine is installed, installs
it (streaming progress events), and opens or closes the connection used by
every document request. The front-end only drives these calls and shows
their outcome; `ConnectionManager` is the engine-side coordinator for that.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from .errors import HostEventError, RemoteOperationError
from .install_log import DEFAULT_LOG_CAPACITY, DownloadProgress, InstallMonitor, InstallStep
from .logging_config import get_logger

DEFAULT_CONNECTION_STRING = "mongodb://localhost:27017"

InstallEmitter = Callable[..., None]


class EngineHost(Protocol):
    """Lifecycle surface of the host process."""

    async def is_installed(self) -> bool:
        """Return True if the database engine is present."""
        ...

    async def install(self, emit: InstallEmitter) -> None:
        """
        Install the database engine.

        Parameters
        ----------
        emit:
            Called as ``emit(payload)`` or ``emit(payload, True)`` for every
            progress or error event.

        Raises
        ------
        RemoteOperationError
            If a step fails.
        """
        ...

    async def connect(self, connection_string: str) -> None:
        """Open the connection. Already connected is not an error."""
        ...

    async def disconnect(self) -> None:
        """Drop the connection."""
        ...


class ConnectionState(str, Enum):
    UNKNOWN = "unknown"
    NOT_INSTALLED = "not_installed"
    INSTALLING = "installing"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class HostSnapshot:
    """Immutable view of the connection state for rendering."""

    state: ConnectionState
    installed: bool | None
    connection_string: str | None
    log_lines: tuple[str, ...]
    download: DownloadProgress | None
    current_step: InstallStep | None
    error: str | None


class ConnectionManager:
    """
    Drives installation and connection through an `EngineHost`.

    Host failures are recorded as the snapshot error and logged. They are
    never raised to the caller.
    """

    def __init__(
        self,
        host: EngineHost,
        *,
        log_capacity: int = DEFAULT_LOG_CAPACITY,
        listener: Callable[[HostSnapshot], None] | None = None,
    ) -> None:
        self._host = host
        self._monitor = InstallMonitor(log_capacity)
        self._listener = listener
        self._state = ConnectionState.UNKNOWN
        self._installed: bool | None = None
        self._connection_string: str | None = None
        self._error: str | None = None
        self._log = get_logger("host")

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def monitor(self) -> InstallMonitor:
        return self._monitor

    def snapshot(self) -> HostSnapshot:
        return HostSnapshot(
            state=self._state,
            installed=self._installed,
            connection_string=self._connection_string,
            log_lines=self._monitor.log.lines(),
            download=self._monitor.download,
            current_step=self._monitor.current_step,
            error=self._error,
        )

    async def check_installation(self) -> bool:
        """Ask the host whether the engine is installed."""
        installed = bool(await self._host.is_installed())
        self._installed = installed
        if not installed:
            self._set_state(ConnectionState.NOT_INSTALLED)
        elif self._state in (ConnectionState.UNKNOWN, ConnectionState.NOT_INSTALLED):
            self._set_state(ConnectionState.DISCONNECTED)
        else:
            self._notify()
        self._log.info("installation_checked", installed=installed)
        return installed

    async def install(self) -> bool:
        """
        Install the engine, streaming events into the log.

        Returns
        -------
        bool
            True on success. False if the install failed or one is running.
        """
        if self._state is ConnectionState.INSTALLING:
            return False

        self._monitor.reset()
        self._error = None
        self._set_state(ConnectionState.INSTALLING)
        try:
            await self._host.install(self._on_event)
        except RemoteOperationError as exc:
            self._log.error("install_failed", error=exc.message)
            self._monitor.handle(exc.message, True)
            self._error = exc.message
            self._set_state(ConnectionState.FAILED)
            return False

        self._installed = True
        self._log.info("install_completed")
        self._set_state(ConnectionState.DISCONNECTED)
        return True

    async def connect(self, connection_string: str = DEFAULT_CONNECTION_STRING) -> bool:
        """Open the host connection."""
        self._connection_string = connection_string
        self._error = None
        self._set_state(ConnectionState.CONNECTING)
        try:
            await self._host.connect(connection_string)
        except RemoteOperationError as exc:
            self._log.warning("connect_failed", error=exc.message)
            self._error = exc.message
            self._set_state(ConnectionState.FAILED)
            return False

        self._log.info("connected")
        self._set_state(ConnectionState.CONNECTED)
        return True

    async def disconnect(self) -> None:
        """Close the host connection."""
        try:
            await self._host.disconnect()
        except RemoteOperationError as exc:
            self._log.warning("disconnect_failed", error=exc.message)
            self._error = exc.message
            self._set_state(ConnectionState.FAILED)
            return
        self._log.info("disconnected")
        self._set_state(ConnectionState.DISCONNECTED)

    async def startup(
        self, *, auto_connect: bool = True, connection_string: str = DEFAULT_CONNECTION_STRING
    ) -> ConnectionState:
        """
        Check installation and connect automatically when installed.

        Returns
        -------
        ConnectionState
            State reached after startup.
        """
        installed = await self.check_installation()
        if installed and auto_connect:
            await self.connect(connection_string)
        return self._state

    def _on_event(self, payload: object, is_error: bool = False) -> None:
        try:
            self._monitor.handle(payload, is_error)
        except HostEventError as exc:
            self._log.warning("install_event_ignored", error=str(exc))
            return
        self._notify()

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self._state:
            self._log.debug("state_changed", previous=self._state.value, state=state.value)
        self._state = state
        self._notify()

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self.snapshot())
