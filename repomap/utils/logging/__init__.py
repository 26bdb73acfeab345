__all__ = [
    "Logger",
    "get_logger",
]

from repomap.utils.logging.default import Logger
from repomap.utils.logging.base import get_logger
