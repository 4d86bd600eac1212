"""Centralized logging service using loguru."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from nexus.config import settings

# Remove default handler
logger.remove()

# Add console handler with color
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.app_log_level.upper(),
    colorize=True,
)

if settings.log_to_file:
    LOG_DIR = Path(settings.log_dir)
    LOG_DIR.mkdir(exist_ok=True)
    logger.add(
        LOG_DIR / "nexus_{time:YYYY-MM-DD}.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )

# Provider SDKs and the HTTP stack log every request at INFO.
for logger_name in (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "httpx",
    "httpcore",
    "openai._base_client",
    "asyncio",
):
    logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())



def _record(kind: str, payload: dict[str, Any], *, failed: bool = False) -> None:
    payload = {"timestamp": datetime.now(timezone.utc).isoformat(), **payload}
    if failed:
        logger.error(f"{kind}_FAILED: {payload}")
    else:
        logger.info(f"{kind}: {payload}")


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log an LLM API call with token usage."""
    _record(
        "LLM_CALL",
        {
            "model": model,
            "caller": caller,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "duration_ms": duration_ms,
            "status": status,
            "error": error,
        },
        failed=bool(error),
    )


def log_research_step(
    subject: str,
    step_type: str,
    status: str,
    data: Optional[dict] = None,
) -> None:
    """Log one step of a company or deep research run."""
    _record("RESEARCH_STEP", {"subject": subject, "step_type": step_type, "status": status, "data": data})


def log_source_result(subject: str, source: str, status: str, error: Optional[str] = None) -> None:
    """Outcome of one data source for a company: ok, skipped or failed."""
    payload = {"subject": subject, "source": source, "status": status, "error": error}
    if status == "failed":
        logger.warning(f"SOURCE_RESULT: {payload}")
    else:
        logger.debug(f"SOURCE_RESULT: {payload}")


def log_event(event_type: str, message: str, **kwargs: Any) -> None:
    """Log a generic event."""
    _record("EVENT", {"event_type": event_type, "message": message, **kwargs})
