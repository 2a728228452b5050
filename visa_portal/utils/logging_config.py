import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(settings) -> None:
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL)

    if not any(isinstance(handler, logging.StreamHandler) for handler in root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(stream_handler)

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = str(log_dir / "app.log")
        already_attached = any(
            isinstance(handler, TimedRotatingFileHandler) and handler.baseFilename == str(Path(log_file).resolve())
            for handler in root.handlers
        )
        if not already_attached:
            file_handler = TimedRotatingFileHandler(
                log_file,
                when="midnight",
                backupCount=settings.LOG_RETENTION_DAYS,
                encoding="utf-8",
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(file_handler)
