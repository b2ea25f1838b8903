"""Advanced logging with Loguru."""

import contextvars
import logging
import sys
from pathlib import Path
from types import FrameType
from typing import Any, Dict, Optional, Union

from loguru import logger


# Context variable for request correlation ID
correlation_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)

__all__ = ["correlation_id_ctx", "setup_structured_logging", "InterceptHandler"]


class InterceptHandler(logging.Handler):
    """Route standard library log records (uvicorn, httpx, google-genai) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level: Union[str, int] = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame: Optional[FrameType] = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _correlation_patcher(record: Dict[str, Any]) -> None:
    """Inject the correlation_id from the ContextVar into the record's extra fields."""
    corr_id = correlation_id_ctx.get()
    if corr_id:
        record["extra"]["correlation_id"] = corr_id


def setup_structured_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_dir: Union[str, Path] = "logs",
    diagnose: bool = False,
) -> None:
    """
    Setup Loguru logging with structured output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Serialize the file sink as JSON lines
        log_dir: Directory for log files
        diagnose: Include variable values in error tracebacks (development only)
    """
    logger.remove()
    logger.configure(patcher=_correlation_patcher)

    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    # Console handler - human readable
    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    logger.add(sys.stdout, format=console_format, level=level, colorize=True)

    if json_format:
        logger.add(
            logs_dir / "otp_relay.jsonl",
            format="{message}",
            level=level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            serialize=True,
        )
    else:
        logger.add(
            logs_dir / "otp_relay.log",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
        )

    # Separate error log; variable values only in development
    logger.add(
        logs_dir / "errors_{time:YYYY-MM-DD}.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} - {message}",
        level="ERROR",
        rotation="10 MB",
        retention="90 days",
        backtrace=True,
        diagnose=diagnose,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.root.setLevel(getattr(logging, level))
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    logger.info(f"Logging initialized (level={level}, json={json_format})")
