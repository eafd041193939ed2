"""
Logging for the Snake DQN trainer.

Every module asks for a logger by its __name__ and gets a child of the
'snake_dqn' logger, so one call to setup_logging() (made by main.py)
controls the whole package:

    from snake_dqn.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Exported model_best.json")

Without that call the first get_logger() installs a console-only handler,
which is what tests and interactive sessions want.

Progress lines are produced by the helpers at the bottom of this module so
that training, export and evaluation output share one "key=value | ..."
layout that is easy to grep out of a long run's log file.
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = 'snake_dqn'
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'


class LogLevel(Enum):
    """Verbosity accepted by config.LOG_LEVEL and --log-level."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        """Look up a level by name, ignoring case."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level '{name}', expected one of {[m.name for m in cls]}")


# Set by setup_logging()
_configured = False
_log_file: Optional[Path] = None


class ColoredFormatter(logging.Formatter):
    """Console formatter that tints the level name when writing to a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str = LOG_FORMAT, stream=None):
        super().__init__(fmt)
        stream = stream if stream is not None else sys.stdout
        self.enabled = hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.enabled:
            return super().format(record)
        # Tint a copy; other handlers share the original record
        tinted = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, '')
        tinted.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(tinted)


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _open_log_file(log_dir: str, filename: Optional[str]) -> logging.FileHandler:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    if filename is None:
        filename = f"training_{datetime.now():%Y%m%d_%H%M%S}.log"

    handler = logging.FileHandler(directory / filename, mode='a', encoding='utf-8')
    # The file keeps everything; the console level only filters the terminal
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(
    log_dir: str = 'logs',
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Install handlers on the 'snake_dqn' logger.

    Args:
        log_dir: Directory for the log file
        level: Console verbosity
        console_output: Write to stdout
        file_output: Also write a timestamped file under log_dir
        log_filename: Fixed file name instead of training_YYYYMMDD_HHMMSS.log
        force: Replace handlers installed by an earlier call
    """
    global _configured, _log_file

    if _configured and not force:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    _reset_handlers(root)
    _log_file = None

    if console_output:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(level.value)
        console.setFormatter(ColoredFormatter(stream=sys.stdout))
        root.addHandler(console)

    if file_output:
        file_handler = _open_log_file(log_dir, log_filename)
        root.addHandler(file_handler)
        _log_file = Path(file_handler.baseFilename)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(level.value)

    _configured = True
    root.debug(f"Logging configured (console={level.name}, file={_log_file})")


def configure_from_config(config: Any, force: bool = True) -> None:
    """Apply LOG_DIR, LOG_LEVEL and LOG_TO_FILE from a Config."""
    setup_logging(
        log_dir=config.LOG_DIR,
        level=LogLevel.from_name(config.LOG_LEVEL),
        file_output=config.LOG_TO_FILE,
        force=force,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, placed under the 'snake_dqn' namespace.

    Example:
        logger = get_logger(__name__)   # 'snake_dqn.ai.agent'
        logger = get_logger('model')    # 'snake_dqn.model'
    """
    if not _configured:
        setup_logging(file_output=False)

    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_log_path() -> Optional[Path]:
    """Path of the active log file, or None when logging to the console only."""
    return _log_file


def _fields(event: str, **fields: Any) -> str:
    parts = [event] + [f"{key}={value}" for key, value in fields.items() if value is not None]
    return " | ".join(parts)


def log_training_metrics(
    episode: int,
    score: float,
    epsilon: float,
    max_score: Optional[float] = None,
    avg_score: Optional[float] = None,
    learning_rate: Optional[float] = None,
    buffer_size: Optional[int] = None,
    steps: Optional[int] = None,
) -> None:
    """One progress line for the training loop; optional fields are omitted when None."""
    get_logger('training').info(_fields(
        f"ep={episode}",
        score=f"{score:.0f}",
        max=None if max_score is None else f"{max_score:.0f}",
        avg=None if avg_score is None else f"{avg_score:.1f}",
        eps=f"{epsilon:.4f}",
        lr=None if learning_rate is None else f"{learning_rate:.6f}",
        buffer=buffer_size,
        steps=steps,
    ))


def log_model_event(event: str, path: str, **context: Any) -> None:
    """Record a model file being exported or loaded, e.g. EXPORT | models/model_best.json | episode=300."""
    get_logger('model').info(_fields(f"{event.upper()} | {path}", **context))


def log_evaluation(path: str, episodes: int, results: Dict[str, float]) -> None:
    """Summary line for a greedy evaluation run of an exported model."""
    get_logger('evaluation').info(_fields(
        f"EVALUATE | {path}",
        episodes=episodes,
        mean=f"{results['mean_score']:.1f}",
        max=results['max_score'],
        min=results['min_score'],
    ))
