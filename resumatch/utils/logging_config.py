"""
Logging setup for the Resumatch API.

One ``dictConfig`` call per process, chosen by ENVIRONMENT:

- development: DEBUG to console and daily log files
- production: LOG_LEVEL to console and daily log files
- testing: WARNING to console only
"""
import functools
import inspect
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

LOG_DIR = Path("logs")
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
TEST_FORMAT = "%(levelname)s - %(name)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024


def _rotating_file(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "default",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": 5,
        "encoding": "utf8",
    }


def setup_logging(level: str = "INFO", to_files: bool = True, fmt: str = LOG_FORMAT) -> None:
    """Route the root, uvicorn and pdfminer loggers through one set of handlers.

    With ``to_files`` the root logger also writes ``logs/resumatch_<date>.log``
    and a separate ``logs/resumatch_errors_<date>.log`` holding ERROR and above.
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    }
    if to_files:
        LOG_DIR.mkdir(exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        handlers["file"] = _rotating_file(LOG_DIR / f"resumatch_{stamp}.log", level)
        handlers["error_file"] = _rotating_file(LOG_DIR / f"resumatch_errors_{stamp}.log", "ERROR")

    names = list(handlers)
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"}},
        "handlers": handlers,
        "root": {"level": level, "handlers": names},
        "loggers": {
            "uvicorn": {"level": "INFO", "handlers": names, "propagate": False},
            # pdfminer is chatty about malformed PDFs
            "pdfminer": {"level": "ERROR"},
        },
    })
    get_logger("logging").info(f"Logging configured: level={level} files={to_files}")


def configure_for_environment() -> None:
    environment = os.getenv("ENVIRONMENT", "development").lower()
    if environment == "testing":
        setup_logging(level="WARNING", to_files=False, fmt=TEST_FORMAT)
    elif environment == "development":
        setup_logging(level="DEBUG")
    else:
        setup_logging(level=os.getenv("LOG_LEVEL", "INFO").upper())


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``resumatch`` namespace"""
    if name.startswith("resumatch"):
        return logging.getLogger(name)
    return logging.getLogger(f"resumatch.{name}")


def log_function_call(func):
    """Log entry, exit and failures of ``func`` at DEBUG, with timing"""
    logger = get_logger(func.__module__)

    def _done(start: float, error: Exception = None):
        elapsed = time.time() - start
        if error is None:
            logger.debug(f"{func.__name__} finished in {elapsed:.3f}s")
        else:
            logger.error(f"{func.__name__} raised after {elapsed:.3f}s: {error}")

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _done(start, e)
                raise
            _done(start)
            return result
        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _done(start, e)
            raise
        _done(start)
        return result
    return wrapper


def log_api_call(operation: str):
    """Log an endpoint's outcome at INFO, named by ``operation``"""
    def decorator(func):
        logger = get_logger(f"api.{func.__module__}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.warning(f"{operation} failed after {time.time() - start:.3f}s: {e}")
                raise
            logger.info(f"{operation} ok in {time.time() - start:.3f}s")
            return result
        return wrapper
    return decorator


class PerformanceMonitor:
    """Times a block; warns when it runs past ``threshold_ms``"""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.elapsed_ms = None
        self._start = None

    def __enter__(self):
        self._start = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.time() - self._start) * 1000
        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(f"{self.operation_name} took {self.elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)")
        else:
            self.logger.debug(f"{self.operation_name} took {self.elapsed_ms:.2f}ms")
