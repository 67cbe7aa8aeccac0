"""Logging configuration for aptos-yield."""

import logging
import os
import sys

# Define TRACE level (lower than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Attributes present on every LogRecord; anything else came in via ``extra=``
_RESERVED_ATTRS = set(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def structured_fields(record: logging.LogRecord) -> dict[str, object]:
    """Return the ``extra`` fields attached to a log record."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class ColoredFormatter(logging.Formatter):
    """Colored log formatter using ANSI escape codes.

    Structured fields passed through ``extra=`` are appended as ``key=value``.
    """

    # ANSI color codes
    COLORS = {
        "TRACE": "\033[90m",  # Dark gray
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors and structured fields."""
        levelname = record.levelname
        if self.use_color and levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{self.BOLD}{levelname}{self.RESET}"
            )

        try:
            result = super().format(record)
        finally:
            record.levelname = levelname

        fields = structured_fields(record)
        if fields:
            rendered = " ".join(f"{key}={value!r}" for key, value in fields.items())
            result = f"{result} | {rendered}"

        return result


def setup_logging(level: str | None = None) -> None:
    """Configure logging for the application.

    Uses ``level`` when given, otherwise the LOG_LEVEL environment variable
    (defaults to INFO). Sets up a console handler with formatted output and
    colors.

    When the level is DEBUG, httpx and urllib3 loggers are set to WARNING
    to reduce noise. Use TRACE to see all of them.
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = TRACE if log_level == "TRACE" else getattr(
        logging, log_level, logging.INFO
    )

    handler = logging.StreamHandler(sys.stdout)
    formatter = ColoredFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        use_color=sys.stdout.isatty(),
    )
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=numeric_level,
        handlers=[handler],
        force=True,
    )

    # urllib3 sits under requests; httpx is only reached through aptos-sdk's RestClient
    if log_level == "TRACE":
        logging.getLogger("httpx").setLevel(TRACE)
        logging.getLogger("urllib3").setLevel(TRACE)
    else:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
