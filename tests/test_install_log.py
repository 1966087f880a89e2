from __future__ import annotations

import pytest

from grid_engine.errors import HostEventError
from grid_engine.install_log import (
    DownloadProgress,
    InstallMonitor,
    InstallStep,
    LogBuffer,
    describe_install_event,
    parse_install_event,
)


def test_log_buffer_evicts_oldest_first() -> None:
    buf = LogBuffer(3)
    for i in range(5):
        buf.append(f"line {i}")
    assert buf.lines() == ("line 2", "line 3", "line 4")
    assert len(buf) == 3
    assert buf.evicted == 2
    assert list(buf) == ["line 2", "line 3", "line 4"]

    buf.clear()
    assert buf.lines() == ()
    assert buf.evicted == 0


def test_log_buffer_requires_positive_capacity() -> None:
    with pytest.raises(ValueError):
        LogBuffer(0)


def test_parse_event_shapes() -> None:
    assert parse_install_event("plain line") == "plain line"
    assert parse_install_event({"message": "Downloading", "step": 2, "total_steps": 5}) == InstallStep(
        message="Downloading", step=2, total_steps=5
    )
    assert parse_install_event(
        {"bytes_downloaded": 512, "total_bytes": 1024, "percentage": 50.0}
    ) == DownloadProgress(bytes_downloaded=512, total_bytes=1024, percentage=50.0)


@pytest.mark.parametrize("payload", [42, {"unexpected": True}, {"bytes_downloaded": "many"}])
def test_parse_event_rejects_unknown_shapes(payload: object) -> None:
    with pytest.raises(HostEventError):
        parse_install_event(payload)


def test_describe_events() -> None:
    assert describe_install_event(InstallStep("Installing", 3, 5)) == "[Step 3/5] Installing"
    assert describe_install_event(InstallStep("Boom", 4, 5, is_error=True)) == "[Step 4/5] ERROR: Boom"
    assert describe_install_event(InstallStep("Odd", 1)) == "[Step 1] Odd"
    assert (
        describe_install_event(DownloadProgress(1024 * 1024, 4 * 1024 * 1024, 25.0))
        == "Downloaded 1.0 of 4.0 MB (25.0%)"
    )
    assert describe_install_event("done\r\n") == "done"


def test_monitor_tracks_progress_without_flooding_the_log() -> None:
    monitor = InstallMonitor(capacity=10)
    monitor.handle({"message": "Downloading installer", "step": 2, "total_steps": 5})
    for pct in (0, 50, 100):
        monitor.handle({"bytes_downloaded": pct, "total_bytes": 100, "percentage": float(pct)})

    assert monitor.download == DownloadProgress(100, 100, 100.0)
    assert monitor.current_step is not None and monitor.current_step.step == 2
    assert monitor.log.lines() == (
        "[Step 2/5] Downloading installer",
        "Downloaded 0.0 of 0.0 MB (100.0%)",
    )


def test_monitor_marks_error_channel_lines() -> None:
    monitor = InstallMonitor()
    monitor.handle("exit code 1", True)
    assert monitor.failed
    assert monitor.log.lines() == ("ERROR: exit code 1",)

    monitor.reset()
    assert not monitor.failed
    assert monitor.log.lines() == ()
    assert monitor.download is None
