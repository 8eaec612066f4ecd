import logging
from typing import Iterable, Tuple

CORE_LOGGER_NAME = "actionref"
CLI_LOGGER_NAME = "actionrefcli"
LOG_FORMAT = "%(asctime)s: %(message)s"

# asyncio reports subprocess transport details at DEBUG
QUIET_LOGGERS = ("asyncio",)


def initialize_logging(
    level: int = logging.INFO,
    format: str = LOG_FORMAT,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS
) -> Tuple[logging.Logger, logging.Logger]:
    """
    Configure logging for the library and the CLI.

    Records go to the root handler on stderr so stdout only carries command
    results. Loggers named in ``quiet_loggers`` never drop below WARNING.

    Returns:
        The core and CLI loggers
    """
    logging.basicConfig(level=level, format=format)

    core_logger = logging.getLogger(CORE_LOGGER_NAME)
    if not any(isinstance(handler, logging.NullHandler) for handler in core_logger.handlers):
        core_logger.addHandler(logging.NullHandler())

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    set_log_level(level)
    return core_logger, logging.getLogger(CLI_LOGGER_NAME)


def set_log_level(level: int) -> None:
    for name in (CORE_LOGGER_NAME, CLI_LOGGER_NAME):
        logging.getLogger(name).setLevel(level)


def set_debug_mode(enable: bool = False) -> None:
    set_log_level(logging.DEBUG if enable else logging.INFO)
