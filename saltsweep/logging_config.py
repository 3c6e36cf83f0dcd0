"""
Centralized logging configuration for the scenario sweep.

Human-readable console output plus optional JSON Lines logging to a per-run
file. Every module obtains its logger through get_pipeline_logger() rather
than calling logging.basicConfig() directly.

Usage:
    from saltsweep.logging_config import get_pipeline_logger
    log = get_pipeline_logger(__name__)
"""

import json
import logging
import os
import time
import uuid


# Bound to every record via RunIdFilter.
_run_id = None

# Structured fields copied into JSON entries when present on a record.
_STRUCTURED_FIELDS = (
    "step_name", "watershed", "input_summary", "output_summary",
    "timing_seconds", "warnings",
)


def get_run_id():
    """Return the current sweep run_id, generating one if needed."""
    global _run_id
    if _run_id is None:
        _run_id = uuid.uuid4().hex[:8]
    return _run_id


def set_run_id(run_id=None):
    """Set (or regenerate) the sweep run_id."""
    global _run_id
    _run_id = run_id or uuid.uuid4().hex[:8]
    return _run_id


class RunIdFilter(logging.Filter):
    """Inject run_id into every log record."""

    def filter(self, record):
        record.run_id = get_run_id()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for machine parsing of run logs."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S.") +
                         f"{int(record.msecs):03d}",
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "run_id": getattr(record, "run_id", None),
            "message": record.getMessage(),
        }
        for key in _STRUCTURED_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


_configured = False
_run_file_handler = None


def setup_logging(run_dir=None, console_level=None, file_level=logging.DEBUG):
    """Configure the root logger with a console and an optional run-file handler.

    Parameters
    ----------
    run_dir : str, optional
        If provided, records are also written to ``{run_dir}/pipeline.jsonl``.
    console_level : int, optional
        Defaults to the SALTSWEEP_LOG_LEVEL environment variable, else INFO.
    file_level : int
        Level for the JSON Lines file handler.
    """
    global _configured, _run_file_handler

    if console_level is None:
        env_level = os.environ.get("SALTSWEEP_LOG_LEVEL", "INFO").upper()
        console_level = getattr(logging, env_level, logging.INFO)

    root = logging.getLogger()

    if not _configured:
        root.setLevel(logging.DEBUG)

        # Handler-level filters: root-logger filters skip propagated records.
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(ConsoleFormatter())
        console.addFilter(RunIdFilter())
        root.addHandler(console)

        _configured = True

    if run_dir and _run_file_handler is None:
        os.makedirs(run_dir, exist_ok=True)
        fh = logging.FileHandler(os.path.join(run_dir, "pipeline.jsonl"))
        fh.setLevel(file_level)
        fh.setFormatter(JsonFormatter())
        fh.addFilter(RunIdFilter())
        root.addHandler(fh)
        _run_file_handler = fh


def reset_logging():
    """Remove all handlers and filters from the root logger (test isolation)."""
    global _configured, _run_file_handler, _run_id

    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)
    for f in root.filters[:]:
        root.removeFilter(f)

    _configured = False
    _run_file_handler = None
    _run_id = None


def get_pipeline_logger(name, run_dir=None):
    """Get a logger for a sweep module, initialising defaults on first use."""
    if not _configured:
        setup_logging(run_dir=run_dir)
    return logging.getLogger(name)


def log_step_summary(
    logger,
    step_name,
    status="success",
    input_summary=None,
    output_summary=None,
    timing_seconds=None,
    warnings_list=None,
):
    """Log a structured one-line step summary at INFO level (WARNING on error)."""
    parts = [f"[{step_name}] {status}"]
    if timing_seconds is not None:
        parts.append(f"({timing_seconds:.2f}s)")
    if output_summary:
        parts.append(f"output={output_summary}")
    if warnings_list:
        parts.append(f"warnings={len(warnings_list)}")

    extra = {"step_name": step_name}
    if input_summary:
        extra["input_summary"] = input_summary
    if output_summary:
        extra["output_summary"] = output_summary
    if timing_seconds is not None:
        extra["timing_seconds"] = timing_seconds
    if warnings_list:
        extra["warnings"] = warnings_list

    level = logging.WARNING if status == "error" else logging.INFO
    logger.log(level, " ".join(parts), extra=extra)


class StepTimer:
    """Context manager recording wall-clock time in ``elapsed``."""

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, *args):
        self.elapsed = time.perf_counter() - self.start
