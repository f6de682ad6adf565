"""
Custom logger used by actions, services and workers.
Levels: warning, info, request, error, slow, great
"""
import logging
import traceback
from typing import Dict, Any

from vibe.logging.log_levels import LEVEL_MAP, LogLevel
from vibe.logging.formatters import get_formatter_for_level
from vibe.helpers.getters import isDebugMode


class CustomLogger:
    """
    Thin wrapper over a stdlib logger with keyword context.

    Usage:
        logger = CustomLogger("vibe.actions.issue")
        logger.info("Issue created", issue_id=12, project_id=3)
        logger.error("Email dispatch failed", exc_info=True, to="a@b.c")
        logger.slow("Board query", duration=2.4)
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if isDebugMode() else logging.INFO)

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc_info: bool = False,
        **context: Any
    ) -> None:
        if not self.logger.isEnabledFor(LEVEL_MAP[level]):
            return

        record = self.logger.makeRecord(
            self.name,
            LEVEL_MAP[level],
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None,
            extra={"context": context, "custom_level": level.value},
        )
        formatted = get_formatter_for_level(level).format(record)
        if exc_info:
            tb = self._get_clean_traceback()
            if tb:
                formatted = f"{formatted}\n{tb}"

        self.logger.log(
            LEVEL_MAP[level],
            formatted,
            extra={"custom_data": {"level": level.value, "module": self.name, **context}},
        )

    def _get_clean_traceback(self) -> str:
        """Current traceback without blank or duplicated lines"""
        if traceback.format_exc().strip() == "NoneType: None":
            return ""
        seen = set()
        clean_lines = []
        for line in traceback.format_exc().split('\n'):
            if line.strip() and line not in seen:
                if 'site-packages' not in line:
                    seen.add(line)
                    clean_lines.append(line)
        return '\n'.join(clean_lines)

    def warning(self, message: str, **context: Any) -> None:
        """Something worth a look that is not an error."""
        self._log(LogLevel.WARNING, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, **context)

    def request(
        self,
        message: str,
        method: str,
        path: str,
        status_code: int,
        duration: float,
        **context: Any
    ) -> None:
        """
        HTTP request log line.

        Example:
            logger.request("API request", method="POST", path="/api/issues",
                           status_code=201, duration=0.152)
        """
        self._log(
            LogLevel.REQUEST,
            message,
            method=method,
            path=path,
            status_code=status_code,
            duration=duration,
            **context
        )

    def error(
        self,
        message: str,
        exc_info: bool = True,
        **context: Any
    ) -> None:
        """Failure that needs attention; includes the active traceback."""
        self._log(LogLevel.ERROR, message, exc_info=exc_info, **context)

    def slow(
        self,
        message: str,
        duration: float,
        threshold: float = 1.0,
        **context: Any
    ) -> None:
        self._log(
            LogLevel.SLOW,
            message,
            duration=duration,
            threshold=threshold,
            **context
        )

    def great(self, message: str, **context: Any) -> None:
        self._log(LogLevel.GREAT, message, **context)


_loggers: Dict[str, CustomLogger] = {}


def get_logger(name: str) -> CustomLogger:
    """
    Cached CustomLogger per name

    Usage:
        from vibe.logging import get_logger
        logger = get_logger(__name__)
    """
    if name not in _loggers:
        _loggers[name] = CustomLogger(name)
    return _loggers[name]
