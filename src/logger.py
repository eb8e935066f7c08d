import logging
import sys
from logging.handlers import RotatingFileHandler
from config import Config
from singleton_meta import SingletonMeta


class Logger(metaclass=SingletonMeta):
    def __init__(self) -> None:
        self._logger: logging.Logger = logging.getLogger('flower_of_today_logger')
        self._config: dict = Config().get_config()

        # Drop handlers left over from a previous instance (e.g. after a config reload)
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)

        # Overall logging level (suppress DEBUG by default)
        self._logger.setLevel(logging.INFO)
        formatter = logging.Formatter('%(asctime)s :: %(levelname)s :: %(message)s')

        # Stream handler for console logging
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(logging.INFO)
        stdout_handler.setFormatter(formatter)
        self._logger.addHandler(stdout_handler)

        # File handler with rotation (only when a path is configured)
        log_file_path = Config().resolve_path((self._config.get('log', {}) or {}).get('log_file_path'))
        if log_file_path:
            file_handler = RotatingFileHandler(log_file_path, maxBytes=1_000_000, backupCount=5)
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)

    def get_logger(self) -> logging.Logger:
        return self._logger
