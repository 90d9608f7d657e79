# src/monitoring/logging_config.py
"""
Central logging configuration for the autonomy runtime.

Call configure_logging() from your main entrypoint once, for example:

    from monitoring.logging_config import configure_logging
    configure_logging("DEBUG", log_file=Path("logs/autonomy/runtime.log"))

After that, scheduler / memory / reflection logs are visible on stdout.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that flood DEBUG output.
QUIET_LOGGERS = ("asyncio", "llama_cpp")

# Set on handlers installed here so a rerun can tell them from foreign ones.
HANDLER_MARKER = "_autonomy_handler"


def installed_handlers(logger: Optional[logging.Logger] = None) -> List[logging.Handler]:
    """Handlers on `logger` (default: root) that configure_logging added."""
    logger = logger or logging.getLogger()
    return [h for h in logger.handlers if getattr(h, HANDLER_MARKER, False)]


def resolve_level(level: Union[int, str]) -> int:
    """Accept logging.DEBUG or "debug"; raise ValueError on unknown names."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return value


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    log_file: Optional[Path] = None,
) -> None:
    """
    Configure root logging unless this function already did.

    Handlers added by others (pytest log capture, a host application)
    are left alone and do not block installation.

    Args:
        level: default logging level (logging.INFO, "DEBUG", ...)
        log_file: optional file that receives the same records as stdout
    """
    root = logging.getLogger()
    resolved = resolve_level(level)

    # Don't duplicate handlers on a second call.
    if installed_handlers(root):
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(formatter)
    setattr(handler, HANDLER_MARKER, True)
    root.addHandler(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        setattr(file_handler, HANDLER_MARKER, True)
        root.addHandler(file_handler)

    root.setLevel(resolved)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
