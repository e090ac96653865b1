"""
Centralized logging configuration for structured JSON logging.
Provides helpers for consistent structured logging across the minting pipeline.

Logs only go to files: the mint executor writes its result document to stdout,
so no console handler is ever attached.
"""

import asyncio
import json
import logging
import logging.handlers
import uuid
from datetime import datetime, timezone
from pathlib import Path
from contextvars import ContextVar
from typing import Optional, Dict, Any
import traceback
import functools

# Correlation key for the current flow (stream id on the client, mint id in the executor)
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# Context variable to store operation name
_operation: ContextVar[Optional[str]] = ContextVar('operation', default=None)


class StructuredJSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = _correlation_id.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        operation = _operation.get()
        if operation:
            log_data["operation"] = operation

        if hasattr(record, 'event'):
            log_data["event"] = record.event

        log_data["message"] = record.getMessage()

        if hasattr(record, 'context') and record.context:
            log_data["context"] = record.context

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formatter that outputs human-readable multi-line records."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        log_lines = [
            f"{timestamp} {record.levelname:8s} [{record.name}] {record.funcName}() - {record.getMessage()}"
        ]

        correlation_id = _correlation_id.get()
        if correlation_id:
            log_lines.append(f"  correlation_id: {correlation_id}")

        operation = _operation.get()
        if operation:
            log_lines.append(f"  operation: {operation}")

        if hasattr(record, 'event') and record.event:
            log_lines.append(f"  event: {record.event}")

        if hasattr(record, 'context') and record.context:
            context = record.context
            if isinstance(context, dict):
                for key, value in context.items():
                    if isinstance(value, (dict, list)):
                        value_str = json.dumps(value, indent=2, ensure_ascii=False, default=str)
                        log_lines.append(f"  {key}:")
                        log_lines.append('\n'.join('    ' + line for line in value_str.split('\n')))
                    else:
                        value_str = str(value)
                        if len(value_str) > 500:
                            value_str = value_str[:500] + "... (truncated)"
                        log_lines.append(f"  {key}: {value_str}")
            else:
                log_lines.append(f"  context: {context}")

        if record.exc_info:
            exc_type, exc_value, exc_traceback = record.exc_info
            log_lines.append(f"  exception_type: {exc_type.__name__ if exc_type else 'Unknown'}")
            log_lines.append(f"  exception_message: {str(exc_value) if exc_value else 'N/A'}")
            if exc_traceback:
                log_lines.append("  traceback:")
                for tb_line in traceback.format_exception(exc_type, exc_value, exc_traceback):
                    for line in tb_line.rstrip().split('\n'):
                        log_lines.append(f"    {line}")

        return '\n'.join(log_lines)


def setup_logging(log_level: str = "INFO", log_dir: Optional[Path] = None) -> None:
    """
    Initialize the logging system with dual file output:
    - Structured JSON logs (nowink.log.json)
    - Human-readable logs (nowink.log)

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files. If None, uses ./logs
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    log_dir = Path(log_dir) if log_dir is not None else Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    json_log_file = log_dir / "nowink.log.json"
    json_file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(json_log_file),
        when='midnight',
        interval=1,
        backupCount=30,
        encoding='utf-8'
    )
    json_file_handler.setLevel(level)
    json_file_handler.setFormatter(StructuredJSONFormatter())

    text_log_file = log_dir / "nowink.log"
    text_file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(text_log_file),
        when='midnight',
        interval=1,
        backupCount=30,
        encoding='utf-8'
    )
    text_file_handler.setLevel(level)
    text_file_handler.setFormatter(HumanReadableFormatter())

    root_logger.addHandler(json_file_handler)
    root_logger.addHandler(text_file_handler)

    log_event(
        level="INFO",
        logger="nowink.core.logging",
        operation="logging_setup",
        event="logging_initialized",
        message="Logging system initialized",
        context={
            "log_level": log_level,
            "log_dir": str(log_dir),
        }
    )


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Set the correlation ID in context."""
    _correlation_id.set(correlation_id)


def generate_correlation_id(prefix: str = "mint") -> str:
    """Generate a unique correlation ID."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def log_event(
    level: str,
    logger: str,
    operation: Optional[str] = None,
    event: Optional[str] = None,
    message: str = "",
    context: Optional[Dict[str, Any]] = None,
    exc_info: Optional[BaseException] = None
) -> None:
    """
    Log a structured event.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger: Logger name (usually module path)
        operation: High-level operation name
        event: Specific event type
        message: Human-readable message
        context: Operation-specific data
        exc_info: Exception to attach
    """
    logger_instance = logging.getLogger(logger)
    log_method = getattr(logger_instance, level.lower(), logger_instance.info)

    extra = {}
    if event:
        extra['event'] = event
    if context:
        extra['context'] = context

    if operation:
        token = _operation.set(operation)
        try:
            log_method(message, extra=extra, exc_info=exc_info)
        finally:
            _operation.reset(token)
    else:
        log_method(message, extra=extra, exc_info=exc_info)


def log_operation_start(logger: str, operation: str, message: str = "",
                        context: Optional[Dict[str, Any]] = None) -> None:
    """Log the start of an operation."""
    log_event(
        level="INFO",
        logger=logger,
        operation=operation,
        event="operation_start",
        message=message or f"Starting {operation}",
        context=context
    )


def log_operation_complete(logger: str, operation: str, message: str = "",
                           context: Optional[Dict[str, Any]] = None,
                           duration: Optional[float] = None) -> None:
    """Log the completion of an operation."""
    context = dict(context or {})
    if duration is not None:
        context["duration_seconds"] = duration

    log_event(
        level="INFO",
        logger=logger,
        operation=operation,
        event="operation_complete",
        message=message or f"Completed {operation}",
        context=context
    )


def log_operation_error(logger: str, operation: str, error: BaseException, message: str = "",
                        context: Optional[Dict[str, Any]] = None) -> None:
    """Log an operation error."""
    context = dict(context or {})
    context["error_type"] = type(error).__name__
    context["error_message"] = str(error)

    log_event(
        level="ERROR",
        logger=logger,
        operation=operation,
        event="operation_error",
        message=message or f"Error in {operation}",
        context=context,
        exc_info=error
    )


def operation_logger(operation_name: str):
    """
    Decorator to automatically log operation start/complete/error.
    Works on both plain functions and coroutines.

    Usage:
        @operation_logger("platform_mint")
        def mint(...):
            ...
    """
    def decorator(func):
        logger_name = func.__module__

        def _start(args, kwargs) -> datetime:
            log_operation_start(
                logger=logger_name,
                operation=operation_name,
                context={
                    "function": func.__name__,
                    "kwargs": {k: str(v)[:200] for k, v in kwargs.items()} if kwargs else None
                }
            )
            return datetime.now(timezone.utc)

        def _elapsed(start_time: datetime) -> float:
            return (datetime.now(timezone.utc) - start_time).total_seconds()

        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = _start(args, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    log_operation_error(logger_name, operation_name, e,
                                        context={"duration_seconds": _elapsed(start_time)})
                    raise
                log_operation_complete(logger_name, operation_name,
                                       context={"result_type": type(result).__name__},
                                       duration=_elapsed(start_time))
                return result
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = _start(args, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log_operation_error(logger_name, operation_name, e,
                                    context={"duration_seconds": _elapsed(start_time)})
                raise
            log_operation_complete(logger_name, operation_name,
                                   context={"result_type": type(result).__name__},
                                   duration=_elapsed(start_time))
            return result
        return wrapper
    return decorator
