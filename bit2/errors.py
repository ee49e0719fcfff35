"""
errors.py

Responsibility: User-facing error type, exit codes and the top-level error reporter.

Lower layers raise their own exception types (`CommandError`, `RenderError`,
`GitHubError`, ...). Command handlers translate them into `Bit2Error` with an
`ErrorCode` (used as the process exit code) and optional recovery steps.
"""

from __future__ import annotations

import logging
import os
from enum import IntEnum

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    # General
    UNKNOWN = 1
    INVALID_INPUT = 2

    # File system
    FILE_NOT_FOUND = 11
    DIRECTORY_EXISTS = 12
    PERMISSION_DENIED = 13

    # Dependencies
    MISSING_DEPENDENCY = 21
    DEPENDENCY_INSTALL_FAILED = 22

    # Database
    DATABASE_CONNECTION_FAILED = 31
    DATABASE_MIGRATION_FAILED = 32
    DATABASE_ALREADY_EXISTS = 33

    # Git
    GIT_NOT_INITIALIZED = 41
    GIT_UNCOMMITTED_CHANGES = 42
    GIT_PUSH_FAILED = 43

    # Authentication
    AUTH_REQUIRED = 51
    AUTH_FAILED = 52

    # Deployment
    DEPLOYMENT_FAILED = 61
    BUILD_FAILED = 62

    # Network
    NETWORK_ERROR = 71
    API_ERROR = 72


class Bit2Error(RuntimeError):
    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        recovery_steps: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.recovery_steps = list(recovery_steps or [])


def debug_enabled() -> bool:
    return bool(os.environ.get("DEBUG"))


def handle_error(error: BaseException) -> int:
    """
    Report `error` through the logger and return the exit code to use.
    """
    if isinstance(error, Bit2Error):
        logger.error("❌ %s", error)
        if error.recovery_steps:
            logger.info("")
            logger.info("🔧 Recovery steps:")
            for step in error.recovery_steps:
                logger.info("  • %s", step)
        if debug_enabled():
            logger.debug("Stack trace:", exc_info=error)
        return int(error.code)

    logger.error("❌ %s", str(error) or "An unexpected error occurred")
    if debug_enabled():
        logger.error("Stack trace:", exc_info=error)
    else:
        logger.info("Run with DEBUG=1 for more details")
    return int(ErrorCode.UNKNOWN)
