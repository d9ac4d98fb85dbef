"""
Custom logging configuration for the assignment service.
Provides clear, presentable console logs, with extra helpers for
showing how candidates were ranked for a task.
"""
import logging
import sys
import time
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Iterable, Optional, Tuple


# ANSI color codes for terminal output
class Colors:
    """ANSI color codes for terminal formatting."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_CYAN = "\033[96m"


# Icons per component, keyed by the last segment of the logger name
COMPONENT_ICONS = {
    "assignment": "🎯",
    "task_service": "📋",
    "repository": "🗄️",
    "db": "🗄️",
    "notifications": "📣",
    "skill_matching": "🧩",
    "tasks": "📋",
    "projects": "📁",
    "members": "👤",
    "skills": "🧩",
    "main": "🚀",
    "default": "▶️",
}


class ServiceFormatter(logging.Formatter):
    """
    Custom formatter that provides clean, presentable log output.
    """

    # Level-specific formatting
    LEVEL_FORMATS = {
        logging.DEBUG: (Colors.DIM, "DEBUG"),
        logging.INFO: (Colors.BRIGHT_CYAN, "INFO "),
        logging.WARNING: (Colors.BRIGHT_YELLOW, "WARN "),
        logging.ERROR: (Colors.BRIGHT_RED, "ERROR"),
        logging.CRITICAL: (Colors.BOLD + Colors.BRIGHT_RED, "CRIT "),
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        color, level_text = self.LEVEL_FORMATS.get(
            record.levelno,
            (Colors.WHITE, record.levelname[:5])
        )

        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        module = record.name.split(".")[-1] if record.name else "root"
        icon = COMPONENT_ICONS.get(module, COMPONENT_ICONS["default"])

        if self.use_colors:
            level_str = f"{color}{level_text}{Colors.RESET}"
            time_str = f"{Colors.DIM}{timestamp}{Colors.RESET}"
            module_str = f"{Colors.BRIGHT_BLUE}{module:16}{Colors.RESET}"
            formatted = f"{time_str} │ {level_str} │ {icon} {module_str} │ {record.getMessage()}"
        else:
            # Plain text output (for file logging)
            formatted = f"{timestamp} | {level_text} | {icon} {module:16} | {record.getMessage()}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_colors: bool = True
) -> None:
    """
    Configure logging for the assignment service.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        use_colors: Whether to use ANSI colors in console output
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(ServiceFormatter(use_colors=use_colors))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(ServiceFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_ranking(
    task_title: str,
    ranking: Iterable[Tuple[str, float, float]],
    logger: logging.Logger
) -> None:
    """
    Log the candidate ranking for a task as a small table.

    Args:
        task_title: Title of the task being assigned
        ranking: (member label, score, workload) tuples, best first
        logger: Logger to write to
    """
    rows = list(ranking)
    logger.info(f"Ranking for '{task_title}' ({len(rows)} candidate(s))")
    for position, (label, score, workload) in enumerate(rows, 1):
        marker = "★" if position == 1 else " "
        logger.info(f"  {marker} {position:>2}. {label:24} score={score:6.2f}  workload={workload:g}h")


# ============================================================================
# Decorator for operation logging
# ============================================================================

def timed_operation(operation_name: Optional[str] = None):
    """
    Decorator to log start, completion and failure of a service operation.

    Usage:
        @timed_operation("auto_assign")
        def auto_assign_task(db, task, project_id):
            ...
    """
    def decorator(func: Callable) -> Callable:
        name = operation_name or func.__name__
        op_logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.time()
            op_logger.debug(f"▶ {name} started")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                op_logger.error(f"✗ {name} failed after {duration_ms:.0f}ms: {e}")
                raise
            duration_ms = (time.time() - start_time) * 1000
            op_logger.info(f"✓ {name} completed ({duration_ms:.0f}ms)")
            return result

        return wrapper
    return decorator
