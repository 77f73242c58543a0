import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "neuronet.log"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}</cyan> | "
    "{message}"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path = Path("logs"),
    json_file: bool = False,
) -> Path:
    """
    Route loguru output to the console and a rotating file under ``log_dir``.

    Sinks are enqueued so HTTP handler threads never interleave records.
    With ``json_file`` the file sink writes one serialized record per line.

    Returns:
        Path of the active log file
    """
    logger.remove()

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=log_level.upper(),
        colorize=True,
        enqueue=True,
    )
    logger.add(
        log_file,
        format=FILE_FORMAT,
        level=log_level.upper(),
        rotation="10 MB",
        retention="7 days",
        compression="zip",
        serialize=json_file,
        enqueue=True,
    )

    logger.info(f"Logging initialized at {log_level.upper()} level, file {log_file}")
    return log_file
