"""
Logging setup for the Prospect Matcher API.

Everything logs under the ``matcher_agent`` namespace. Profiles are picked from
ENVIRONMENT; provider SDK and driver loggers are held at WARNING so a batch of
LLM calls does not drown the matcher's own records.
"""
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

LOGGER_NAMESPACE = "matcher_agent"

# httpx carries the OpenAI SDK; urllib3 carries requests to Ollama
QUIET_LOGGERS = ("httpx", "openai", "urllib3", "pymongo", "motor")

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-40s | %(funcName)-24s:%(lineno)-4d | %(message)s",
    "json": '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
}

ENVIRONMENT_PROFILES: Dict[str, Dict[str, Any]] = {
    "production": {"enable_file": True, "format_style": "json"},
    "development": {"level": "DEBUG", "enable_file": True, "format_style": "detailed"},
    "testing": {"level": "WARNING", "enable_file": False, "format_style": "simple"},
}


def _rotating(filename: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(filename),
        "maxBytes": 10 * 1024 * 1024,
        "backupCount": 5,
        "encoding": "utf8",
    }


def build_logging_config(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed",
) -> Dict[str, Any]:
    """Return the dictConfig mapping for one profile without applying it."""
    log_dir = Path(log_dir or os.getenv("LOG_DIR", "logs"))
    stamp = datetime.now().strftime("%Y%m%d")

    handlers: Dict[str, Any] = {}
    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "console",
            "stream": "ext://sys.stdout",
        }
    if enable_file:
        handlers["file"] = _rotating(log_dir / f"matcher_agent_{stamp}.log", level)
        handlers["error_file"] = _rotating(log_dir / f"matcher_agent_errors_{stamp}.log", "ERROR")

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": FORMATS.get(format_style, FORMATS["detailed"]), "datefmt": "%Y-%m-%d %H:%M:%S"},
            "detailed": {"format": FORMATS["detailed"], "datefmt": "%Y-%m-%d %H:%M:%S"},
        },
        "handlers": handlers,
        "loggers": {
            "": {"level": level, "handlers": list(handlers), "propagate": False},
            "uvicorn": {"level": "INFO", "handlers": [h for h in handlers if h != "error_file"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": [h for h in handlers if h == "console"], "propagate": False},
        },
    }
    for name in QUIET_LOGGERS:
        config["loggers"][name] = {"level": "WARNING"}
    return config


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed",
) -> None:
    """
    Apply a logging configuration

    Args:
        level: Root logging level
        log_dir: Directory for rotating log files (defaults to $LOG_DIR or ./logs)
        enable_console: Log to stdout
        enable_file: Log to dated files, plus a separate errors-only file
        format_style: Console format ('simple', 'detailed', 'json'); files are always detailed
    """
    config = build_logging_config(level, log_dir, enable_console, enable_file, format_style)
    if enable_file:
        Path(config["handlers"]["file"]["filename"]).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(config)
    get_logger("logging").info(
        f"Logging configured - Level: {level}, Console: {enable_console}, File: {enable_file}"
    )


def get_logger(name: str) -> logging.Logger:
    """Logger under the matcher_agent namespace (name is usually __name__)"""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def configure_for_environment(environment: Optional[str] = None) -> str:
    """Apply the profile for ENVIRONMENT and return its name.

    Unknown environments get console-only logging at LOG_LEVEL.
    """
    environment = (environment or os.getenv("ENVIRONMENT", "development")).lower()
    profile = dict(ENVIRONMENT_PROFILES.get(environment, {"enable_file": False}))
    profile.setdefault("level", os.getenv("LOG_LEVEL", "INFO").upper())
    setup_logging(**profile)
    return environment


class PerformanceMonitor:
    """Times a block and logs it; slow or failed blocks log at a higher level.

    Extra keyword context (prospect or position ids) is attached to each record.
    """

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000, **context):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.context = context
        self.start_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        extra = {**self.context, "elapsed_ms": round(self.elapsed_ms, 2)}

        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}", extra=extra)
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms "
                f"(exceeded threshold {self.threshold_ms}ms)",
                extra=extra,
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms", extra=extra)
        return False
