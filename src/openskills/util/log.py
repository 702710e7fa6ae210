"""Structured logging with tagged loggers, timers and rotating file output.

Every subsystem creates its logger once at import time::

    log = Log.create({"service": "skill.scanner"})
    log.info("scan finished", {"count": 12})

Output is disabled until :meth:`Log.configure` enables a sink, so library
callers stay silent unless the command line front end turns logging on.
"""

import json
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from ..core.global_paths import GlobalPath

MAX_LOG_FILES = 10


class LogLevel(str, Enum):
    """Log severity levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, value: str | None) -> "LogLevel":
        if value is None:
            return cls.INFO
        text = value.strip().lower()
        if text in {"warn", "warning"}:
            return cls.WARN
        for level in cls:
            if level.value.lower() == text:
                return level
        raise ValueError(f"invalid log level: {value}")


class LogFormat(str, Enum):
    """Log output format."""

    KV = "kv"
    JSON = "json"
    PRETTY = "pretty"

    @classmethod
    def parse(cls, value: str | None) -> "LogFormat":
        if value is None:
            return cls.KV
        text = value.strip().lower()
        for fmt in cls:
            if fmt.value == text:
                return fmt
        raise ValueError(f"invalid log format: {value}")


LEVEL_PRIORITY = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


@dataclass
class LogConfig:
    """Global logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.KV
    console: bool = False
    file: bool = False
    log_file_path: Optional[str] = None
    _file_handle: Optional[TextIO] = None


_config = LogConfig()
_last_timestamp = time.time()


@dataclass
class LogTimer:
    """Timer for measuring operation duration."""
    logger: 'Logger'
    message: str
    extra: Dict[str, Any]
    start_time: float = field(default_factory=time.time)

    def stop(self) -> None:
        duration_ms = int((time.time() - self.start_time) * 1000)
        self.logger.info(self.message, {**self.extra, "status": "completed", "duration": duration_ms})

    def __enter__(self) -> 'LogTimer':
        return self

    def __exit__(self, *args) -> None:
        self.stop()


class Logger:
    """Structured logger with support for tagging and timing."""

    def __init__(self, tags: Optional[Dict[str, Any]] = None):
        self.tags = tags or {}

    def _should_log(self, level: LogLevel) -> bool:
        if not (_config.console or _config.file):
            return False
        return LEVEL_PRIORITY[level] >= LEVEL_PRIORITY[_config.level]

    def _format_error(self, error: BaseException, depth: int = 0) -> str:
        """Format error with cause chain."""
        result = str(error) or error.__class__.__name__
        if error.__cause__ and depth < 10:
            result += " Caused by: " + self._format_error(error.__cause__, depth + 1)
        return result

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, BaseException):
            return self._format_error(value)
        if isinstance(value, (dict, list, tuple, int, float, bool)) or value is None:
            return value
        return str(value)

    def _value(self, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, (dict, list, tuple)):
            return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        text = str(value)
        if text == "" or any(ch.isspace() for ch in text) or "=" in text:
            return json.dumps(text, ensure_ascii=False)
        return text

    def _build_payload(
        self,
        level: LogLevel,
        message: Any,
        extra: Optional[Dict[str, Any]] = None,
    ) -> dict[str, Any]:
        global _last_timestamp

        now = time.time()
        delta_ms = int((now - _last_timestamp) * 1000)
        _last_timestamp = now

        tags = {**self.tags, **(extra or {})}
        data = {k: self._normalize(v) for k, v in tags.items() if v is not None}

        return {
            "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "delta_ms": delta_ms,
            "level": level.value.lower(),
            "msg": self._normalize(message),
            **data,
        }

    def _build_message(
        self,
        level: LogLevel,
        message: Any,
        extra: Optional[Dict[str, Any]] = None,
    ) -> str:
        payload = self._build_payload(level, message, extra)
        if _config.format == LogFormat.JSON:
            return json.dumps(payload, ensure_ascii=False, separators=(",", ":")) + "\n"

        pairs = " ".join(
            f"{k}={self._value(v)}"
            for k, v in payload.items()
            if k not in {"time", "delta_ms", "level", "msg"}
        )
        if _config.format == LogFormat.PRETTY:
            text = str(payload.get("msg") or "")
            suffix = f" ({pairs})" if pairs else ""
            return f"{payload['time']} {level.value} {text}{suffix} +{payload['delta_ms']}ms\n"

        parts = [
            str(payload["time"]),
            f"+{payload['delta_ms']}ms",
            f"level={payload['level']}",
            f"msg={self._value(payload.get('msg'))}",
            pairs,
        ]
        return " ".join(part for part in parts if part) + "\n"

    def _write(self, message: str) -> None:
        if _config.console:
            sys.stderr.write(message)
            sys.stderr.flush()
        if _config.file and _config._file_handle:
            _config._file_handle.write(message)
            _config._file_handle.flush()

    def _log(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> None:
        if self._should_log(level):
            self._write(self._build_message(level, message, extra))

    def debug(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, message, extra)

    def info(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, message, extra)

    def warn(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.WARN, message, extra)

    def error(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.ERROR, message, extra)

    def time(self, message: str, extra: Optional[Dict[str, Any]] = None) -> LogTimer:
        """Create a timer context for measuring operation duration."""
        extra = extra or {}
        self.info(message, {**extra, "status": "started"})
        return LogTimer(logger=self, message=message, extra=extra)


class Log:
    """Global logging interface and factory."""

    _loggers: Dict[str, Logger] = {}

    @classmethod
    def create(cls, tags: Optional[Dict[str, Any]] = None) -> Logger:
        """Create or retrieve a cached logger instance.

        If tags contain a 'service' key, the logger is cached by service name.
        """
        tags = tags or {}
        service = tags.get("service")

        if service and isinstance(service, str):
            if service not in cls._loggers:
                cls._loggers[service] = Logger(tags=tags)
            return cls._loggers[service]

        return Logger(tags=tags)

    @classmethod
    def configure(
        cls,
        *,
        level: LogLevel | None = None,
        format: LogFormat | None = None,
        console: bool | None = None,
        file: bool | None = None,
        dev: bool = False,
    ) -> None:
        """Configure logging sinks and output format.

        Args:
            level: Minimum level written to any sink.
            format: ``kv``, ``json`` or ``pretty`` lines.
            console: Write to stderr.
            file: Write to a file under :meth:`GlobalPath.log`.
            dev: Use a fixed ``dev.log`` instead of a timestamped file.
        """
        if level is not None:
            _config.level = level
        if format is not None:
            _config.format = format
        if console is not None:
            _config.console = console
        _config.file = True if file is None else file

        cls.close()
        if not _config.file:
            _config.log_file_path = None
            return

        log_dir = Path(GlobalPath.log())
        log_dir.mkdir(parents=True, exist_ok=True)
        cls._cleanup_logs(log_dir)
        if dev:
            log_path = log_dir / "dev.log"
        else:
            stamp = datetime.now().isoformat().split(".")[0].replace(":", "")
            log_path = log_dir / f"{stamp}.log"

        _config.log_file_path = str(log_path)
        _config._file_handle = log_path.open("w", encoding="utf-8")

    @classmethod
    def disable(cls) -> None:
        """Turn every sink off."""
        cls.close()
        _config.console = False
        _config.file = False
        _config.log_file_path = None

    @classmethod
    def _cleanup_logs(cls, log_dir: Path) -> None:
        """Remove old log files, keeping only the most recent ones."""
        log_files = sorted(
            log_dir.glob("????-??-??T??????.log"),
            key=lambda p: p.stat().st_mtime,
        )
        for old_file in log_files[:-MAX_LOG_FILES]:
            old_file.unlink(missing_ok=True)

    @classmethod
    def close(cls) -> None:
        """Close the log file handle if open."""
        if _config._file_handle:
            _config._file_handle.close()
            _config._file_handle = None
