import logging
import multiprocessing
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler

from colorlog import ColoredFormatter

LOGGER = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "/tmp/release-tests.log"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class DuplicateFilter(logging.Filter):
    """
    Drop consecutive identical records; waits log the same line on every probe.
    """

    def __init__(self, name=""):
        super().__init__(name=name)
        self.last_log = None
        self.repeated_number = 0

    def filter(self, record):
        current_log = (record.module, record.levelno, record.msg)
        if current_log == self.last_log:
            self.repeated_number += 1
            return False

        if self.repeated_number:
            LOGGER.warning(f"Last log repeated {self.repeated_number} times.")
        self.last_log = current_log
        self.repeated_number = 0
        return True


class HarnessLogFormatter(ColoredFormatter):
    def formatTime(self, record, datefmt=None):  # noqa: N802
        return datetime.fromtimestamp(record.created).isoformat()


def setup_logging(log_level, log_file=DEFAULT_LOG_FILE):
    """
    Route the root and "basic" loggers through one queue to the console and a rotating log file.

    The "basic" logger writes bare messages (test separators), the root logger writes
    timestamped, colored records.

    Args:
        log_level (int): log level
        log_file (str): logging output file

    Returns:
        QueueListener: started listener; stop it at the end of the session.
    """
    basic_log_formatter = logging.Formatter(fmt="%(message)s")
    root_log_formatter = HarnessLogFormatter(
        fmt="%(asctime)s %(name)s %(log_color)s%(levelname)s%(reset)s %(message)s",
        log_colors=LOG_COLORS,
        secondary_log_colors={},
    )

    log_queue = multiprocessing.Queue(maxsize=-1)
    log_listener = QueueListener(
        log_queue,
        RotatingFileHandler(filename=log_file, maxBytes=100 * 1024 * 1024, backupCount=20),
        logging.StreamHandler(),
    )

    for logger, handler_name, formatter in (
        (logging.getLogger("basic"), "basic", basic_log_formatter),
        (logging.getLogger(), "root", root_log_formatter),
    ):
        queue_handler = QueueHandler(queue=log_queue)
        queue_handler.set_name(name=handler_name)
        queue_handler.setFormatter(fmt=formatter)
        logger.setLevel(level=log_level)
        logger.addHandler(hdlr=queue_handler)
        logger.propagate = False

    logging.getLogger().addFilter(filter=DuplicateFilter())

    log_listener.start()
    return log_listener
