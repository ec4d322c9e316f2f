from .errors import EncodeOrWriteError, EndOfStream, StartupError
from .logging_utils import LoggerLike, StructuredLogger, ensure_structured_logger, get_module_logger

__all__ = [
    'EncodeOrWriteError',
    'EndOfStream',
    'StartupError',
    'LoggerLike',
    'StructuredLogger',
    'ensure_structured_logger',
    'get_module_logger',
]
