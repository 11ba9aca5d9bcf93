import logging
import logging.handlers

from rich.console import Console
from rich.logging import RichHandler

from .config import Settings


def setup_logging(settings: Settings) -> None:
    log_dir = settings.log_directory
    log_dir.mkdir(parents=True, exist_ok=True)

    # Rich console output, messages printed without markup
    console = Console(width=120)
    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=True,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )
    rich_handler.setLevel(settings.log_level)

    # Worker thread name included: moves and decoding run off the event loop
    file_format = (
        "%(asctime)s - %(levelname)s - [%(threadName)s] "
        "%(filename)s:%(lineno)d in %(funcName)s() - "
        "%(message)s"
    )

    # One file per day, old ones pruned after the retention period
    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=settings.log_file_path,
        when="midnight",
        interval=1,
        backupCount=settings.log_retention_days,
        encoding="utf-8",
    )
    file_handler.setLevel(settings.log_level)
    file_handler.setFormatter(logging.Formatter(file_format))

    # Configure root logger (catches everything)
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.addHandler(rich_handler)
    root_logger.addHandler(file_handler)

    # Silence noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("watchfiles").setLevel(logging.WARNING)

    logging.info(
        f"Logging initialized - File: {settings.log_file_path}, "
        f"Level: {settings.log_level}, Retention: {settings.log_retention_days} days"
    )


def log_configuration(settings: Settings) -> None:
    config = settings.to_intake_config()
    logging.info("Configuration:")
    for role, path in config.directories:
        logging.info(f" {role.upper() + '_DIR':<27} = {path}")
    logging.info(f" {'POLL_TIMEOUT_MS':<27} = {config.poll_timeout_ms}")
    logging.info(f" {'STABILITY_INTERVAL_MS':<27} = {settings.stability_interval_ms}")
    logging.info(f" {'STABILITY_MIN_IDLE_MS':<27} = {settings.stability_min_idle_ms}")
    logging.info(f" {'STABILITY_MAX_ATTEMPTS':<27} = {config.stability.max_attempts}")
    logging.info(f" {'STABILITY_CONSEC_MATCH':<27} = {config.stability.consecutive_matches}")
    logging.info(f" {'WORKERS':<27} = {config.worker_count}")
    logging.info(f" {'QUEUE_CAPACITY':<27} = {config.queue_capacity}")
    logging.info(f" {'ACCEPTED_EXTENSIONS':<27} = {', '.join(config.accepted_extensions)}")
    logging.info(f" {'RECONCILE_INTERVAL_SECONDS':<27} = {config.reconcile_interval_seconds}")
    logging.info(f" {'RENDER_DPI':<27} = {config.render_dpi}")
