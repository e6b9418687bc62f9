import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("numba", "matplotlib", "PIL")


def configure_logging(level: int | str = logging.INFO) -> None:
    """Send all package logs to stdout at the given level."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not any(
        getattr(h, "_scale_analysis", False) for h in root_logger.handlers
    ):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler._scale_analysis = True  # type: ignore[attr-defined]
        root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()
