"""
Logging for the career story wizard.

Every analyze/generate request gets a short run id; messages are prefixed
with that id, the journal entry and the pipeline stage so one request can
be followed across the detector, generators and the story store:

    [run:3f9a1c2e] [entry:65f0c0ff] [generate] Generate started: ...

DEBUG_MODE=true turns on DEBUG output for every wizard logger.
"""

import json
import logging
import os
import sys
import time
import uuid
from typing import Optional


_DEBUG_MODE = os.getenv("DEBUG_MODE", "false").lower() == "true"

SIMPLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, safe for messages containing quotes or newlines."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def is_debug_mode() -> bool:
    return _DEBUG_MODE


def new_run_id() -> str:
    """Short random id correlating the log lines of one request."""
    return uuid.uuid4().hex[:8]


class StoryLogger:
    """
    Wraps a stdlib logger and prefixes each message with request context.

    Loggers are cheap and immutable: ``bind()`` returns a copy carrying
    more context rather than mutating the shared instance.
    """

    def __init__(
        self,
        name: str,
        run_id: Optional[str] = None,
        stage: Optional[str] = None,
        entry_id: Optional[str] = None,
        debug_mode: Optional[bool] = None,
    ):
        self.logger = logging.getLogger(name)
        self.run_id = run_id
        self.stage = stage
        self.entry_id = entry_id
        self._debug_mode = is_debug_mode() if debug_mode is None else debug_mode

        if self._debug_mode:
            self.logger.setLevel(logging.DEBUG)

    def bind(
        self,
        run_id: Optional[str] = None,
        stage: Optional[str] = None,
        entry_id: Optional[str] = None,
    ) -> "StoryLogger":
        return StoryLogger(
            self.logger.name,
            run_id=run_id or self.run_id,
            stage=stage or self.stage,
            entry_id=entry_id or self.entry_id,
            debug_mode=self._debug_mode,
        )

    @property
    def prefix(self) -> str:
        parts = []
        if self.run_id:
            parts.append(f"[run:{self.run_id[:8]}]")
        if self.entry_id:
            parts.append(f"[entry:{self.entry_id[:8]}]")
        if self.stage:
            parts.append(f"[{self.stage}]")
        return " ".join(parts)

    def _format(self, message: str) -> str:
        return f"{self.prefix} {message}" if self.prefix else message

    def debug(self, message: str, **kwargs):
        self.logger.debug(self._format(message), **kwargs)

    def info(self, message: str, **kwargs):
        self.logger.info(self._format(message), **kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(self._format(message), **kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(self._format(message), **kwargs)

    def exception(self, message: str, **kwargs):
        self.logger.exception(self._format(message), **kwargs)

    def timed(self, step: str) -> "StepTimer":
        """
        Context manager logging how long a step took.

        Usage:
            with log.timed("narrative"):
                narrative = await generator.generate(...)
        """
        return StepTimer(self, step)


class StepTimer:
    """Logs a step's duration at DEBUG, or at WARNING when it raised."""

    def __init__(self, log: StoryLogger, step: str):
        self.log = log
        self.step = step
        self.duration_ms: Optional[int] = None
        self._start = 0.0

    def __enter__(self) -> "StepTimer":
        self._start = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.duration_ms = int((time.monotonic() - self._start) * 1000)
        if exc_val is not None:
            self.log.warning(f"{self.step} failed after {self.duration_ms}ms: {exc_val}")
        else:
            self.log.debug(f"{self.step} took {self.duration_ms}ms")
        return False


def setup_logging(level: Optional[str] = None, format: Optional[str] = None) -> None:
    """
    Configure the root logger (stdout).

    Args:
        level: DEBUG/INFO/WARNING/ERROR (default: LOG_LEVEL env, DEBUG in debug mode)
        format: "simple" or "json" (default: LOG_FORMAT env, then "simple")
    """
    level = level or os.getenv("LOG_LEVEL") or ("DEBUG" if is_debug_mode() else "INFO")
    format = format or os.getenv("LOG_FORMAT", "simple")
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if format == "json":
        handler.setFormatter(JsonFormatter(datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(SIMPLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(
    name: str,
    run_id: Optional[str] = None,
    stage: Optional[str] = None,
    entry_id: Optional[str] = None,
    debug_mode: Optional[bool] = None,
) -> StoryLogger:
    return StoryLogger(name, run_id=run_id, stage=stage, entry_id=entry_id, debug_mode=debug_mode)
