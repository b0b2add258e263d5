import sys
import tempfile
from pathlib import Path

from loguru import logger

import tik_config

LOG_DIR = tik_config.LOG_DIR

try:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
except OSError:
    # No permission next to the code, fall back to the temp dir
    LOG_DIR = Path(tempfile.gettempdir()) / "tsun_logs"
    LOG_DIR.mkdir(parents=True, exist_ok=True)

logger.remove()

_console_sink = getattr(sys, "__stderr__", None) or sys.stderr
if _console_sink is not None:
    logger.add(
        _console_sink,
        level=tik_config.LOG_LEVEL,
        format=(
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        ),
    )

logger.add(
    str(LOG_DIR / "tsun_{time:YYYY-MM-DD}.log"),
    level="DEBUG",
    rotation="00:00",
    retention="7 days",
    encoding="utf-8",
    enqueue=True,
    backtrace=True,
    diagnose=False,  # keeps request headers (API key) out of tracebacks
)
