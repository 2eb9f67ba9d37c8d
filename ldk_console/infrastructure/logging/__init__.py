from .console_logger import (
    ROOT_LOGGER_NAME,
    LogEntry,
    JSONFormatter,
    HumanFormatter,
    TimedOperation,
    setup_logging,
    timed_operation,
)

__all__ = [
    'ROOT_LOGGER_NAME',
    'LogEntry',
    'JSONFormatter',
    'HumanFormatter',
    'TimedOperation',
    'setup_logging',
    'timed_operation',
]
