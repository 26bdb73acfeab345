import logging

from repomap.core.config import settings

_PACKAGE_LOGGER = "repomap"
_configured = False


def _configure_package_logger() -> None:
    """Attach a single stream handler to the package logger.

    Applications embedding the pipeline that configure the root logger
    themselves can set ``REPO_MAP_LOG_LEVEL`` and ignore this handler; it
    is only installed once per process.
    """
    global _configured
    if _configured:
        return

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.setLevel(settings.log_level.upper())
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(settings.log_format))
        package_logger.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace, configuring it on first use."""
    _configure_package_logger()
    return logging.getLogger(name)
