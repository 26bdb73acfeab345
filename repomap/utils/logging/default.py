import logging

from repomap.utils.logging.base import get_logger


class Logger:
    """
    Logger bound to the context of one analysis run.

    Wraps a standard library logger and merges the run context (repository id,
    repository root, ...) into the ``extra`` of every record so that log lines
    from interleaved runs can be told apart by handlers and formatters.

    Args:
        name (str): The name of the logger instance
        run_context (dict, optional): Context attached to every log record
    """

    def __init__(self, name: str, run_context: dict | None = None):
        self.base_logger: logging.Logger = get_logger(name)
        self.run_context = run_context or {}

    def bind(self, **context) -> "Logger":
        """Return a new Logger whose run context is extended with ``context``."""
        merged = dict(self.run_context)
        merged.update(context)
        return Logger(self.base_logger.name, merged)

    def __merge_extra(self, extra: dict | None) -> dict:
        if not extra:
            return dict(self.run_context)

        merged = dict(extra)
        merged.update(self.run_context)
        return merged

    def debug(self, message, extra=None):
        self.base_logger.debug(message, extra=self.__merge_extra(extra))

    def info(self, message, extra=None):
        self.base_logger.info(message, extra=self.__merge_extra(extra))

    def warning(self, message, extra=None):
        self.base_logger.warning(message, extra=self.__merge_extra(extra))

    def error(self, message, extra=None):
        self.base_logger.error(message, extra=self.__merge_extra(extra))
