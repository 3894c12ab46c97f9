"""
Logging Configuration
Sets up the ``avgcalc`` logger and the bridge into the GUI log panel.
"""
import logging
import sys
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal


LOGGER_NAME = "avgcalc"

LEVEL_COLORS = {
    logging.DEBUG: "gray",
    logging.INFO: "lime",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger for the 'avgcalc' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Avoid duplicate output when called twice (tests, restarts)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info("Logging initialized.")
    return logger


class LogSignals(QObject):
    log = pyqtSignal(str, str)


class QtLogHandler(logging.Handler):
    """Forwards records to the GUI as (message, colour) through a Qt signal.

    Records may come from the fetch worker thread; the signal is delivered
    to the panel on the GUI thread.
    """

    def __init__(self, level=logging.INFO):
        super().__init__(level)
        self.signals = LogSignals()
        self.setFormatter(logging.Formatter('%(message)s'))

    def emit(self, record):
        try:
            text = self.format(record)
            color = LEVEL_COLORS.get(record.levelno, "white")
            self.signals.log.emit(text, color)
        except Exception:
            self.handleError(record)
