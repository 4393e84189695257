"""
Structured Logger Module

structlog configuration shared by every pipeline stage. Events are rendered as
JSON lines carrying a correlation id, the pipeline phase and the component
name, so one synthesis request can be followed from cache lookup to ranking.

Example Usage:
    from src.utils.logger import get_logger

    logger = get_logger(
        correlation_id="a1b2c3d4-e5f6-7890-abcd-ef1234567890",
        phase="orchestration",
        component="request_orchestrator",
    )
    logger.info("Batch released", batch_size=3, reason="size")

Log Levels:
    - DEBUG: Prompt/response sizes, cache lookups, gate waits
    - INFO: Batch releases, model calls, synthesis summaries
    - WARNING: Validation rejects, enrichment degradation, fallback use
    - ERROR: Exhausted retries, fatal provider errors

Environment:
    CAREER_PIPELINE_LOG_FILE: log file path ("" logs to the stream only)
    CAREER_PIPELINE_LOG_LEVEL: initial level (default INFO)
"""

import logging
import os
import re
import sys
import uuid
from pathlib import Path
from typing import Any, Optional, TextIO

import structlog
from structlog.types import BindableLogger, EventDict, Processor, WrappedLogger

DEFAULT_LOG_FILE = "logs/career-pipeline.log"
MASK = "***MASKED***"

SENSITIVE_KEYS = ("password", "api_key", "token", "secret", "credential", "auth")

# A sensitive word must be the whole key or a "_"/"-" delimited part of it,
# so "access_token" is masked but "max_tokens_used" and "author" are not.
_SENSITIVE_KEY = re.compile(
    r"(?:^|[_-])(?:" + "|".join(SENSITIVE_KEYS) + r")(?:$|[_-])"
)


def is_sensitive_key(key: str) -> bool:
    return bool(_SENSITIVE_KEY.search(key.lower()))


def _mask_mapping(values: dict[str, Any]) -> dict[str, Any]:
    masked: dict[str, Any] = {}
    for key, value in values.items():
        if is_sensitive_key(str(key)):
            masked[key] = MASK
        elif isinstance(value, dict):
            masked[key] = _mask_mapping(value)
        else:
            masked[key] = value
    return masked


def mask_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """structlog processor replacing credential values with ``***MASKED***``.

    Nested dicts (error ``details`` payloads, request metadata) are masked too.
    """
    return _mask_mapping(event_dict)


def build_processors(json_output: bool = True) -> list[Processor]:
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        mask_credentials,
        renderer,
    ]


def configure_logging(
    log_file: Optional[str] = DEFAULT_LOG_FILE,
    log_level: str = "INFO",
    stream: Optional[TextIO] = None,
    json_output: bool = True,
) -> None:
    """
    Route structlog through stdlib logging to a stream and an optional file.

    Args:
        log_file: Path to log file, or None for the stream only
        log_level: Level name ("DEBUG" ... "CRITICAL")
        stream: Stream handler target (stdout when None); the CLI passes
            stderr so stdout stays free for results
        json_output: JSON lines (default) or plain key=value console output
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        format="%(message)s",
        level=logging.getLevelName(log_level.upper()),
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=build_processors(json_output),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(
    correlation_id: Optional[str] = None,
    phase: Optional[str] = None,
    component: Optional[str] = None,
) -> BindableLogger:
    """
    Get a logger bound to a correlation id and, when given, phase and component.

    Args:
        correlation_id: Request trace id (a UUID4 is generated when omitted)
        phase: Pipeline phase, e.g. "orchestration", "enrichment", "ranking"
        component: Component name, e.g. "request_orchestrator"
    """
    context = {"correlation_id": correlation_id or str(uuid.uuid4())}
    if phase:
        context["phase"] = phase
    if component:
        context["component"] = component
    return structlog.get_logger().bind(**context)


configure_logging(
    log_file=os.getenv("CAREER_PIPELINE_LOG_FILE", DEFAULT_LOG_FILE) or None,
    log_level=os.getenv("CAREER_PIPELINE_LOG_LEVEL", "INFO"),
)
