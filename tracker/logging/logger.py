import logging
import sys

_FORMAT = "%(asctime)s [%(levelname)s] %(message)s%(context)s"


class _ContextFormatter(logging.Formatter):
    """Appends the keyword context of a Log call as sorted key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        context = getattr(record, "tracker_context", None) or {}
        record.context = "".join(f" {key}={context[key]}" for key in sorted(context))
        return super().format(record)


class Log:
    """Tracker logging. Keyword arguments are rendered after the message.

    Log.info("Package updated", package_id=pid, actor=uid)
    -> "... [INFO] Package updated actor=u-1 package_id=p-1"
    """

    _logger: logging.Logger = logging.getLogger("tracker")

    @classmethod
    def configure(cls, log_level: str) -> None:
        """Set the level and attach a single stdout handler."""
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(_ContextFormatter(_FORMAT))
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **context: object) -> None:
        cls._logger.info(message, extra={"tracker_context": context})

    @classmethod
    def warning(cls, message: str, **context: object) -> None:
        cls._logger.warning(message, extra={"tracker_context": context})

    @classmethod
    def error(cls, message: str, **context: object) -> None:
        cls._logger.error(message, extra={"tracker_context": context})

    @classmethod
    def debug(cls, message: str, **context: object) -> None:
        cls._logger.debug(message, extra={"tracker_context": context})
