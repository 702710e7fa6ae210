"""Runtime logging bootstrap helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.config_schema import Config
from ..util.log import Log, LogFormat, LogLevel


@dataclass(frozen=True)
class LogSettings:
    level: LogLevel
    format: LogFormat
    console: bool
    file: bool


def resolve_log_settings(
    config: Config,
    *,
    level: Optional[str] = None,
    format: Optional[str] = None,
    console: Optional[bool] = None,
    file: Optional[bool] = None,
) -> LogSettings:
    """Command line flags win over the ``logging`` config section."""
    log = config.logging

    lv = LogLevel.parse(level or (log.level if log else None))
    fm = LogFormat.parse(format or (log.format if log else None))

    use_console = console
    if use_console is None:
        use_console = log.console if log and log.console is not None else False

    use_file = file
    if use_file is None:
        use_file = log.file if log and log.file is not None else True

    return LogSettings(level=lv, format=fm, console=use_console, file=use_file)


def setup_logging(
    config: Config,
    *,
    level: Optional[str] = None,
    format: Optional[str] = None,
    console: Optional[bool] = None,
    file: Optional[bool] = None,
) -> LogSettings:
    """Resolve settings and initialize the process logger."""
    settings = resolve_log_settings(config, level=level, format=format, console=console, file=file)
    try:
        Log.configure(
            level=settings.level,
            format=settings.format,
            console=settings.console,
            file=settings.file,
        )
    except OSError:
        # no writable log dir; keep stderr if it was requested
        Log.configure(level=settings.level, format=settings.format, console=settings.console, file=False)
    return settings
