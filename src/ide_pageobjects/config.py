"""Configuration utilities.

Reads package defaults from environment variables.
"""

import logging
import os

# Environment variable name for the default repeat timeout (milliseconds)
REPEAT_TIMEOUT_ENV_VAR = "IDE_PAGEOBJECTS_REPEAT_TIMEOUT"

# Environment variable name for the log level used by setup_logging()
LOG_LEVEL_ENV_VAR = "IDE_PAGEOBJECTS_LOG_LEVEL"


def get_default_repeat_timeout() -> float | None:
    """Get the default repeat timeout from IDE_PAGEOBJECTS_REPEAT_TIMEOUT.

    Default: None (repeat tasks without a timeout loop until done or aborted)
    Set IDE_PAGEOBJECTS_REPEAT_TIMEOUT=30000 to give every such task a 30s budget.

    Returns:
        Timeout in milliseconds, or None if the variable is unset or empty

    Raises:
        ValueError: If the variable is not a non-negative number
    """
    raw = os.environ.get(REPEAT_TIMEOUT_ENV_VAR, "").strip()
    if not raw:
        return None

    try:
        timeout = float(raw)
    except ValueError as e:
        raise ValueError(f"{REPEAT_TIMEOUT_ENV_VAR} must be a number of milliseconds, got {raw!r}") from e

    if timeout < 0:
        raise ValueError(f"{REPEAT_TIMEOUT_ENV_VAR} must not be negative, got {raw!r}")
    return timeout


def get_log_level() -> int:
    """Get the log level from IDE_PAGEOBJECTS_LOG_LEVEL.

    Default: INFO

    Returns:
        Numeric logging level

    Raises:
        ValueError: If the variable does not name a logging level
    """
    name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"{LOG_LEVEL_ENV_VAR} must be a logging level name, got {name!r}")
    return level
