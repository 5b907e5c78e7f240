import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s"

_session_dirs: dict[str, Path] = {}


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure root logging with project defaults and return the app logger."""
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    return logging.getLogger("cryptoguard")


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a named logger, ensuring logging is configured."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(f"cryptoguard.{name}" if name else "cryptoguard")


def get_session_dir(base_dir: str) -> Path:
    """Return the per-process log directory under ``base_dir``, creating it once."""
    if base_dir not in _session_dirs:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        session_dir = Path(base_dir) / f"session-{stamp}"
        session_dir.mkdir(parents=True, exist_ok=True)
        _session_dirs[base_dir] = session_dir
    return _session_dirs[base_dir]
