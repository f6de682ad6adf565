from vibe.core.config import settings


def isDebugMode() -> bool:
    """True when running a local development server."""
    return settings.MODE == "development"


def isTestMode() -> bool:
    return settings.MODE == "test"
