"""
utils.logging_setup: Colored logging configuration
"""
import logging
import sys
from typing import Optional

# Libraries whose INFO/DEBUG chatter is hidden unless verbose >= 2
NOISY_LOGGERS = ("PIL", "torch", "torchvision", "torchmetrics")


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name on the console."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # other handlers see the plain level name
            record.levelname = levelname


def configure_logger(verbose: int = 0, log_file: Optional[str] = None) -> None:
    """
    Configure root logging for scripts and notebooks using the metrics package.

    Args:
        verbose: 0=INFO, 1=DEBUG, 2+=DEBUG with logger names/line numbers and
            third-party loggers left at their own levels
        log_file: Optional path; receives everything at DEBUG without colours
    """
    detailed_format = "[%(asctime)s] %(levelname)s [%(name)s:%(lineno)d] %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO if verbose == 0 else logging.DEBUG)
    console_format = detailed_format if verbose >= 2 else "[%(asctime)s] %(levelname)s %(message)s"
    console_handler.setFormatter(ColoredFormatter(console_format, datefmt="%H:%M:%S"))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(detailed_format, datefmt="%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(file_handler)
        logging.info(f"Logging to file: {log_file}")

    if verbose < 2:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.debug(f"Logging configured with verbosity level {verbose}")
