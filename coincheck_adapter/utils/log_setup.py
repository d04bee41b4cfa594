"""
Logging setup for scripts and the main entry point.

Library modules never configure logging themselves; they only call
logging.getLogger(__name__). Entry points call configure_logging once.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Marks the handler we install so repeated calls don't stack handlers.
_HANDLER_NAME = "coincheck_adapter.console"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Install a console handler on the root logger.

    Safe to call more than once: the handler is added only the first time,
    later calls just update the level.

    Args:
        level: Level name ("DEBUG", "INFO", "WARNING", ...).

    Returns:
        The root logger.

    Raises:
        ValueError: If level is not a known logging level name.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root_logger = logging.getLogger()
    if not any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)

    root_logger.setLevel(numeric_level)
    return root_logger
