import logging
import sys
from collections.abc import Mapping


class ContextFormatter(logging.Formatter):
    """Appends the keyword context of a Log call as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context: Mapping[str, object] = getattr(record, "context", None) or {}
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in context.items())
        return line


class Log:
    """Pipeline-wide logging facade.

    Keyword arguments travel as one ``context`` mapping on the record, so
    names such as ``filename`` never collide with LogRecord attributes.
    """

    _logger: logging.Logger = logging.getLogger("vat_extraction")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level and attach a single stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(ContextFormatter("%(asctime)s [%(levelname)s] %(message)s"))
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **context: object) -> None:
        cls._logger.info(message, extra={"context": context})

    @classmethod
    def error(cls, message: str, **context: object) -> None:
        cls._logger.error(message, extra={"context": context})

    @classmethod
    def exception(cls, message: str, **context: object) -> None:
        """Log at error level with the active exception's traceback."""
        cls._logger.exception(message, extra={"context": context})

    @classmethod
    def warning(cls, message: str, **context: object) -> None:
        cls._logger.warning(message, extra={"context": context})

    @classmethod
    def debug(cls, message: str, **context: object) -> None:
        cls._logger.debug(message, extra={"context": context})
