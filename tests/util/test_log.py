from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from openskills.core.global_paths import GlobalPath
from openskills.util.log import MAX_LOG_FILES, Log, LogFormat, LogLevel


def test_log_writes_console_and_file(monkeypatch, tmp_path: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(tmp_path)))
    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=True, file=True, dev=True)

    log = Log.create({"service": "test.log"})
    log.info("hello", {"value": 7})
    Log.close()

    stderr = capsys.readouterr().err
    text = (tmp_path / "dev.log").read_text(encoding="utf-8")

    assert "msg=hello" in stderr
    assert "service=test.log" in stderr
    assert "value=7" in text


def test_log_supports_json_format(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(tmp_path)))
    Log.configure(level=LogLevel.INFO, format=LogFormat.JSON, console=False, file=True, dev=True)

    log = Log.create({"service": "test.json"})
    log.info("hello world", {"meta": {"k": "v"}})
    Log.close()

    line = (tmp_path / "dev.log").read_text(encoding="utf-8").strip()
    payload = json.loads(line)

    assert payload["level"] == "info"
    assert payload["msg"] == "hello world"
    assert payload["service"] == "test.json"
    assert payload["meta"] == {"k": "v"}


def test_log_is_silent_until_configured(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.disable()

    Log.create({"service": "test.silent"}).error("nobody hears this")

    assert capsys.readouterr().err == ""


def test_log_level_filters_lower_levels(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.WARN, format=LogFormat.KV, console=True, file=False)
    log = Log.create({"service": "test.level"})

    log.info("quiet")
    log.warn("loud", {"error": ValueError("bad input")})

    stderr = capsys.readouterr().err
    assert "quiet" not in stderr
    assert "msg=loud" in stderr
    assert 'error="bad input"' in stderr


def test_timer_logs_start_and_completion(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=True, file=False)

    with Log.create({"service": "test.timer"}).time("scan", {"roots": 3}):
        pass

    lines = capsys.readouterr().err.strip().splitlines()
    assert len(lines) == 2
    assert "status=started" in lines[0]
    assert "status=completed" in lines[1]
    assert "roots=3" in lines[1]
    assert "duration=" in lines[1]


def test_create_caches_by_service() -> None:
    assert Log.create({"service": "same"}) is Log.create({"service": "same"})
    assert Log.create() is not Log.create()


def test_old_log_files_are_removed(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(tmp_path)))
    for i in range(MAX_LOG_FILES + 3):
        old = tmp_path / f"2024-01-{i + 1:02d}T000000.log"
        old.write_text("", encoding="utf-8")
        os.utime(old, (1_700_000_000 + i, 1_700_000_000 + i))

    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=False, file=True, dev=True)
    Log.close()

    remaining = sorted(p.name for p in tmp_path.glob("2024-*.log"))
    assert len(remaining) == MAX_LOG_FILES
    assert remaining[0] == "2024-01-04T000000.log"


@pytest.mark.parametrize(
    ("text", "level"),
    [("debug", LogLevel.DEBUG), ("WARNING", LogLevel.WARN), (None, LogLevel.INFO)],
)
def test_level_parse(text, level) -> None:  # type: ignore[no-untyped-def]
    assert LogLevel.parse(text) is level


def test_parse_rejects_unknown_values() -> None:
    with pytest.raises(ValueError):
        LogLevel.parse("loud")
    with pytest.raises(ValueError):
        LogFormat.parse("xml")
