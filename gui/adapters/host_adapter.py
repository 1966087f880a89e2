"""Qt adapter for the engine lifecycle.

Wraps `ConnectionManager` so the setup tab can check the installation,
install the engine and open or close the connection without blocking the UI
thread. Every change arrives as a `HostSnapshot` through `state_changed`.
"""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from grid_engine.host import ConnectionManager, ConnectionState, EngineHost
from gui.adapters.event_loop import LoopThread


class HostAdapter(QObject):
    """Marshals lifecycle calls onto the engine loop thread."""

    state_changed = Signal(object)  # HostSnapshot
    connected = Signal()

    def __init__(self, host: EngineHost, loop: LoopThread, *, log_capacity: int) -> None:
        super().__init__()
        self._loop = loop
        self._manager = ConnectionManager(
            host, log_capacity=log_capacity, listener=self.state_changed.emit
        )

    def check_installation(self) -> None:
        self._loop.submit(self._manager.check_installation())

    def install(self) -> None:
        self._loop.submit(self._manager.install())

    def connect_to(self, connection_string: str) -> None:
        self._loop.submit(self._connect(connection_string))

    def disconnect_from(self) -> None:
        self._loop.submit(self._manager.disconnect())

    def startup(self, *, auto_connect: bool, connection_string: str) -> None:
        self._loop.submit(self._startup(auto_connect, connection_string))

    async def _connect(self, connection_string: str) -> None:
        if await self._manager.connect(connection_string):
            self.connected.emit()

    async def _startup(self, auto_connect: bool, connection_string: str) -> None:
        await self._manager.startup(auto_connect=auto_connect, connection_string=connection_string)
        if self._manager.state is ConnectionState.CONNECTED:
            self.connected.emit()
