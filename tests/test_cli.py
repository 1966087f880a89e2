from __future__ import annotations

import json
from pathlib import Path

import pytest

import docdesk.cli as cli_module


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    path = tmp_path / "data.json"
    path.write_text(
        json.dumps(
            {
                "users": [
                    {"_id": "A", "name": "Bob"},
                    {"_id": "B", "age": 5},
                    {"_id": "C", "name": "Ada", "tags": ["x", "y"]},
                ],
                "orders": [],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_cli_help_exits_zero(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as info:
        cli_module.main(["--help"])
    assert info.value.code == 0
    assert "browse" in capsys.readouterr().out


def test_cli_collections(data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli_module.main(["collections", "--data", str(data_file)])
    assert rc == 0
    assert capsys.readouterr().out.splitlines() == ["orders", "users"]


def test_cli_collections_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli_module.main(["collections", "--data", str(tmp_path / "nope.json")])
    assert rc == 2
    assert "ERROR:" in capsys.readouterr().out


def test_cli_browse_first_page(data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli_module.main(
        ["browse", "--data", str(data_file), "--collection", "users", "--page-size", "2"]
    )
    out = capsys.readouterr().out
    assert rc == 0
    lines = out.splitlines()
    assert lines[0] == "Collection: users"
    assert lines[1] == "Page 1 of 2 (3 documents, 2 per page)"
    assert [c.strip() for c in lines[3].split("|")] == ["_id", "name", "age", "tags"]
    assert [c.strip() for c in lines[5].split("|")] == ["A", "Bob", "", ""]
    assert [c.strip() for c in lines[6].split("|")] == ["B", "", "5", ""]


def test_cli_browse_page_clamps(data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli_module.main(
        ["browse", "--data", str(data_file), "--collection", "users", "--page-size", "2", "--page", "9"]
    )
    out = capsys.readouterr().out
    assert rc == 0
    assert "Page 2 of 2" in out
    assert '["x","y"]' in out


def test_cli_browse_with_filter(data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli_module.main(
        ["browse", "--data", str(data_file), "--collection", "users", "--filter", '{"name": "Ada"}']
    )
    out = capsys.readouterr().out
    assert rc == 0
    assert 'Filter: {"name": "Ada"}' in out
    assert "(1 documents, 10 per page)" in out


def test_cli_browse_bad_filter_returns_2(data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli_module.main(
        ["browse", "--data", str(data_file), "--collection", "users", "--filter", "{oops"]
    )
    out = capsys.readouterr().out
    assert rc == 2
    assert "ERROR: Invalid filter JSON" in out


def test_cli_browse_rejects_bad_page_size(data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli_module.main(
        ["browse", "--data", str(data_file), "--collection", "users", "--page-size", "0"]
    )
    assert rc == 2
    assert "--page-size must be positive" in capsys.readouterr().out


def test_cli_browse_empty_collection(data_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = cli_module.main(["browse", "--data", str(data_file), "--collection", "orders"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "(no documents)" in out
    assert "Page 1 of 1 (0 documents, 10 per page)" in out


def test_cli_paths(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("DOCDESK_DATA_ROOT", str(tmp_path))
    rc = cli_module.main(["paths"])
    out = capsys.readouterr().out
    assert rc == 0
    assert f"data_root: {tmp_path}" in out
    assert f"settings: {tmp_path / 'gui_settings.json'}" in out
