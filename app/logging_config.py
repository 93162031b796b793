"""
Application logging configuration.

Every module obtains the same named logger through setup_logging(), so
access-level transitions, share-link rejections and mirror outcomes end up
in one stream with a single format.
"""
import logging
import sys

LOGGER_NAME = "fileshare"


def setup_logging() -> logging.Logger:
    """
    Configure and return the application logger.

    Output goes to stdout as
    ``<timestamp> - <logger> - <level> - <message>``, which works for both
    local development and uvicorn/gunicorn deployments.

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    # Prevent duplicate handlers if called multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(console_handler)

    return logger


def token_preview(token: str | None) -> str:
    """Shorten a share token for log lines; full tokens are credentials."""
    if not token:
        return "<none>"
    return f"{token[:8]}..."
