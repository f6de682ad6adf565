import logging
from vibe.logging.log_levels import LogLevel


class BaseFormatter(logging.Formatter):
    """Formatter that appends the structured context to the message"""
    prefix = ""

    def __init__(self):
        super().__init__(self.prefix + '%(asctime)s - %(name)s - %(message)s')

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            message = f"{message} | {pairs}"
        return message


class ErrorFormatter(BaseFormatter):
    prefix = '❌ [ERROR] '


class WarningFormatter(BaseFormatter):
    prefix = '⚠️  [WARNING] '


class InfoFormatter(BaseFormatter):
    prefix = 'ℹ️  [INFO] '


class RequestFormatter(BaseFormatter):
    prefix = '🌐 [REQUEST] '


class SlowFormatter(BaseFormatter):
    prefix = '🐌 [SLOW] '


class GreatFormatter(BaseFormatter):
    prefix = '✅ [GREAT] '


_FORMATTERS = {
    LogLevel.ERROR: ErrorFormatter,
    LogLevel.WARNING: WarningFormatter,
    LogLevel.INFO: InfoFormatter,
    LogLevel.REQUEST: RequestFormatter,
    LogLevel.SLOW: SlowFormatter,
    LogLevel.GREAT: GreatFormatter,
}


def get_formatter_for_level(level: LogLevel) -> logging.Formatter:
    """Returns the formatter for a custom level"""
    return _FORMATTERS.get(level, BaseFormatter)()
