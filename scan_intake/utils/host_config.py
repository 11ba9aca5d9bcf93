"""
Host-specific settings file selection.

Each intake host gets its own `<hostname>-settings.env`, seeded from the
shared `settings.env` the first time the service starts on that machine.
"""

import logging
import shutil
import socket
from pathlib import Path

BASE_SETTINGS_FILE = "settings.env"


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split(".")[0]


def get_hostname_settings_file(base_dir: Path = Path(".")) -> str:
    """
    Return the settings file to load for this host.

    If `<hostname>-settings.env` is missing but `settings.env` exists, the
    host file is created from it with a short header. Without either file the
    base name is returned and pydantic-settings falls back to environment
    variables only.
    """
    base_settings = base_dir / BASE_SETTINGS_FILE
    host_settings = base_dir / f"{get_hostname()}-settings.env"

    if host_settings.exists():
        logging.debug(f"Using host-specific configuration: {host_settings}")
        return str(host_settings)

    if not base_settings.exists():
        return str(base_settings)

    try:
        shutil.copy2(base_settings, host_settings)
        content = host_settings.read_text(encoding="utf-8")
        header = (
            f"# Intake settings for host: {get_hostname()}\n"
            f"# Generated from {BASE_SETTINGS_FILE}; edit freely for this machine\n\n"
        )
        host_settings.write_text(header + content, encoding="utf-8")
        logging.info(f"Created host-specific configuration: {host_settings}")
        return str(host_settings)
    except OSError as e:
        logging.error(f"Could not create {host_settings}: {e}")
        return str(base_settings)


def list_all_settings_files(base_dir: Path = Path(".")) -> list[str]:
    settings_files = []
    if (base_dir / BASE_SETTINGS_FILE).exists():
        settings_files.append(str(base_dir / BASE_SETTINGS_FILE))
    settings_files.extend(str(p) for p in sorted(base_dir.glob("*-settings.env")))
    return settings_files
