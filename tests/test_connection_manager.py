from __future__ import annotations

import pytest

from grid_engine.host import ConnectionManager, ConnectionState, HostSnapshot
from grid_engine.memory_service import INSTALL_STEPS, InMemoryDocumentService, SimulatedEngineHost


def _manager(**host_kwargs: object) -> tuple[ConnectionManager, InMemoryDocumentService, list[HostSnapshot]]:
    service = InMemoryDocumentService({"users": []}, connected=False)
    host = SimulatedEngineHost(service, **host_kwargs)  # type: ignore[arg-type]
    seen: list[HostSnapshot] = []
    return ConnectionManager(host, log_capacity=50, listener=seen.append), service, seen


@pytest.mark.asyncio
async def test_startup_connects_when_installed() -> None:
    manager, service, _seen = _manager(installed=True)
    state = await manager.startup(auto_connect=True, connection_string="mongodb://localhost:27017")
    assert state is ConnectionState.CONNECTED
    assert service.connected


@pytest.mark.asyncio
async def test_startup_without_engine_stays_not_installed() -> None:
    manager, service, _seen = _manager(installed=False)
    assert await manager.startup() is ConnectionState.NOT_INSTALLED
    assert not service.connected


@pytest.mark.asyncio
async def test_startup_can_skip_auto_connect() -> None:
    manager, service, _seen = _manager(installed=True)
    assert await manager.startup(auto_connect=False) is ConnectionState.DISCONNECTED
    assert not service.connected


@pytest.mark.asyncio
async def test_install_streams_steps_into_the_log() -> None:
    manager, _service, seen = _manager(download_bytes=4 * 1024 * 1024)
    await manager.check_installation()

    assert await manager.install()

    snap = manager.snapshot()
    assert snap.state is ConnectionState.DISCONNECTED
    assert snap.installed
    assert snap.log_lines[0] == f"[Step 1/5] {INSTALL_STEPS[0]}"
    assert "Downloaded 4.0 of 4.0 MB (100.0%)" in snap.log_lines
    assert snap.log_lines[-1] == "Database engine installation completed successfully"
    assert snap.download is not None and snap.download.complete
    assert any(s.state is ConnectionState.INSTALLING for s in seen)


@pytest.mark.asyncio
async def test_failed_install_is_reported_not_raised() -> None:
    manager, _service, _seen = _manager(fail_at_step=3)
    assert not await manager.install()
    snap = manager.snapshot()
    assert snap.state is ConnectionState.FAILED
    assert snap.error is not None and "step 3" in snap.error
    assert snap.log_lines[-1].startswith("ERROR: ")


@pytest.mark.asyncio
async def test_bad_connection_string_fails() -> None:
    manager, service, _seen = _manager(installed=True)
    assert not await manager.connect("http://localhost")
    snap = manager.snapshot()
    assert snap.state is ConnectionState.FAILED
    assert snap.error is not None and snap.error.startswith("Failed to parse connection string")
    assert not service.connected


@pytest.mark.asyncio
async def test_connect_then_disconnect() -> None:
    manager, service, _seen = _manager(installed=True)
    assert await manager.connect("mongodb+srv://cluster.example.net")
    assert manager.snapshot().connection_string == "mongodb+srv://cluster.example.net"
    await manager.disconnect()
    assert manager.state is ConnectionState.DISCONNECTED
    assert not service.connected


@pytest.mark.asyncio
async def test_unrecognized_events_are_ignored() -> None:
    manager, _service, _seen = _manager()
    manager._on_event({"nonsense": 1})
    assert manager.snapshot().log_lines == ()
