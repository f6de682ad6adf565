"""
Keyword-context logging for the API and the Celery worker.

    from vibe.logging import get_logger
    logger = get_logger(__name__)
"""
from vibe.logging.custom_logger import CustomLogger, get_logger
from vibe.logging.log_levels import LogLevel

__all__ = ['CustomLogger', 'LogLevel', 'get_logger']
