import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.domain_objects import (
    IntakeConfiguration,
    IntakeDirectories,
    StabilityConfiguration,
)
from .core.exceptions import ConfigurationError
from .utils.host_config import get_hostname_settings_file


def default_worker_count() -> int:
    return max(2, (os.cpu_count() or 1) // 2)


class Settings(BaseSettings):
    # Directories
    incoming_dir: str = "incoming"
    processing_dir: str = "processing"
    finished_dir: str = "finished"
    failed_dir: str = "failed"

    # Watch loop
    poll_timeout_ms: int = 1000
    accepted_extensions: str = ".pdf"  # comma separated, case-insensitive
    reconcile_interval_seconds: int = 30  # 0 disables the periodic sweep

    # Stability detection
    stability_interval_ms: int = 750
    stability_min_idle_ms: int = 2000
    stability_max_attempts: int = 15
    stability_consec_match: int = 2

    # Worker pool
    workers: int = Field(default_factory=default_worker_count)
    queue_capacity: int = 200
    shutdown_grace_seconds: float = 10.0

    # Barcode extraction
    render_dpi: int = 200

    # Logging
    log_level: str = "INFO"
    log_file_path: str = "logs/scan_intake.log"
    log_retention_days: int = 30

    # Status API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix="WATCH_",
        env_file=get_hostname_settings_file(),
        extra="ignore",
    )

    @property
    def log_directory(self) -> Path:
        return Path(self.log_file_path).parent

    @property
    def extension_list(self) -> tuple[str, ...]:
        """Normalised accepted extensions: lower case with a leading dot."""
        extensions = []
        for raw in self.accepted_extensions.split(","):
            ext = raw.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = "." + ext
            extensions.append(ext)
        return tuple(extensions)

    @property
    def config_file_info(self) -> dict:
        """Return information about which configuration file is being used."""
        from .utils.host_config import get_hostname, list_all_settings_files

        return {
            "hostname": get_hostname(),
            "active_config_file": get_hostname_settings_file(),
            "all_available_configs": list_all_settings_files(),
        }

    def to_intake_config(self) -> IntakeConfiguration:
        """
        Build the immutable configuration handed to every intake component.

        Raises:
            ConfigurationError: if a value is out of range or two directories
                resolve to the same location.
        """
        positive_fields = {
            "poll_timeout_ms": self.poll_timeout_ms,
            "stability_interval_ms": self.stability_interval_ms,
            "stability_max_attempts": self.stability_max_attempts,
            "stability_consec_match": self.stability_consec_match,
            "workers": self.workers,
            "queue_capacity": self.queue_capacity,
            "render_dpi": self.render_dpi,
        }
        for name, value in positive_fields.items():
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        if self.stability_min_idle_ms < 0:
            raise ConfigurationError("stability_min_idle_ms must not be negative")
        if self.reconcile_interval_seconds < 0:
            raise ConfigurationError("reconcile_interval_seconds must not be negative")
        if self.shutdown_grace_seconds < 0:
            raise ConfigurationError("shutdown_grace_seconds must not be negative")
        if not self.extension_list:
            raise ConfigurationError("accepted_extensions must name at least one extension")

        directories = IntakeDirectories.from_paths(
            incoming=self.incoming_dir,
            processing=self.processing_dir,
            finished=self.finished_dir,
            failed=self.failed_dir,
        )

        return IntakeConfiguration(
            directories=directories,
            stability=StabilityConfiguration(
                interval_seconds=self.stability_interval_ms / 1000,
                min_idle_seconds=self.stability_min_idle_ms / 1000,
                max_attempts=self.stability_max_attempts,
                consecutive_matches=self.stability_consec_match,
            ),
            accepted_extensions=self.extension_list,
            poll_timeout_ms=self.poll_timeout_ms,
            reconcile_interval_seconds=self.reconcile_interval_seconds,
            worker_count=self.workers,
            queue_capacity=self.queue_capacity,
            shutdown_grace_seconds=self.shutdown_grace_seconds,
            render_dpi=self.render_dpi,
        )
