"""Global XDG-compliant directory paths for Open Skills.

Application data, logs, cache and the skill trash live under the platform
directories reported by ``platformdirs``. The user's home directory can be
overridden for tests.
"""

import os
from pathlib import Path
from platformdirs import user_cache_dir, user_config_dir, user_data_dir

APP_NAME = "open-skills"


def expand_home(path: str) -> str:
    """Resolve a leading ``~`` against :meth:`GlobalPath.home`."""
    if path == "~":
        return GlobalPath.home()
    if path.startswith("~/") or path.startswith("~\\"):
        return os.path.join(GlobalPath.home(), path[2:])
    if path.startswith("~"):
        return os.path.join(GlobalPath.home(), path[1:])
    return path


class GlobalPath:
    """Global path management for Open Skills directories."""

    _initialized = False

    @classmethod
    def home(cls) -> str:
        """Get user home directory, with override for testing."""
        return os.environ.get("OPEN_SKILLS_TEST_HOME", str(Path.home()))

    @classmethod
    def data(cls) -> str:
        """Application data directory."""
        return user_data_dir(APP_NAME)

    @classmethod
    def log(cls) -> str:
        """Log file directory."""
        return str(Path(cls.data()) / "log")

    @classmethod
    def trash(cls) -> str:
        """Where deleted skill directories are moved to."""
        return str(Path(cls.data()) / "trash")

    @classmethod
    def cache(cls) -> str:
        """Cache directory."""
        return user_cache_dir(APP_NAME)

    @classmethod
    def config(cls) -> str:
        """Configuration directory."""
        return user_config_dir(APP_NAME)

    @classmethod
    def initialize(cls) -> None:
        """Create the data, log and config directories once per process."""
        if cls._initialized:
            return

        for path in [cls.data(), cls.config(), cls.log()]:
            try:
                Path(path).mkdir(parents=True, exist_ok=True)
            except OSError:
                # scanning and browsing work without a writable data dir
                pass

        cls._initialized = True


GlobalPath.initialize()
