import logging
import os

from pythonjsonlogger import jsonlogger


class Logger(logging.LoggerAdapter):
    """JSON logger for the package. Keyword arguments become structured fields."""

    _instance = None
    _initialized = False

    def __new__(cls) -> "Logger":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if not Logger._initialized:
            # CLI output stays quiet unless LOG_LEVEL or --verbose asks otherwise
            formatter = jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(message)s",
                rename_fields={"asctime": "@timestamp", "levelname": "log_level"},
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)

            logger = logging.getLogger("helpcopilot")
            logger.addHandler(handler)
            logger.propagate = False

            super().__init__(logger)
            self.set_level(os.getenv("LOG_LEVEL", "WARNING"))
            Logger._initialized = True

    def set_level(self, level: str) -> None:
        self.logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        exc_info = kwargs.pop("exc_info", None)

        result_kwargs = {}
        if kwargs:
            result_kwargs["extra"] = kwargs
        if exc_info is not None:
            result_kwargs["exc_info"] = exc_info
        return msg, result_kwargs


logger = Logger()
