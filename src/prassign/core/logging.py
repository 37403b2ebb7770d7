"""Process-wide logging setup."""
import logging
from typing import Optional

from .config.settings import PrAssignConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_MARK = "_prassign_handler"


def configure_logging(config: PrAssignConfig, root: Optional[logging.Logger] = None) -> logging.Logger:
    """Configure the root logger from ``config``.

    Safe to call more than once; handlers installed by a previous call are
    replaced rather than duplicated.

    Args:
        config: Loaded configuration (uses ``log_level`` and ``log_file``)
        root: Logger to configure, defaults to the root logger

    Returns:
        The configured logger
    """
    root = root if root is not None else logging.getLogger()
    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {config.log_level}")

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
        root.addHandler(handler)

    root.setLevel(level)
    return root
