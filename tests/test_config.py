"""
Tests for Settings - WATCH_ environment parsing and validation.
"""

from pathlib import Path

import pytest

from scan_intake.config import Settings, default_worker_count
from scan_intake.core.exceptions import ConfigurationError
from scan_intake.utils.host_config import get_hostname, get_hostname_settings_file


@pytest.fixture
def env_dirs(monkeypatch, tmp_path):
    for role in ["incoming", "processing", "finished", "failed"]:
        monkeypatch.setenv(f"WATCH_{role.upper()}_DIR", str(tmp_path / role))
    return tmp_path


def load_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_defaults_match_documented_values(self, env_dirs):
        settings = load_settings()

        assert settings.poll_timeout_ms == 1000
        assert settings.stability_interval_ms == 750
        assert settings.stability_min_idle_ms == 2000
        assert settings.stability_max_attempts == 15
        assert settings.stability_consec_match == 2
        assert settings.queue_capacity == 200
        assert settings.render_dpi == 200
        assert settings.workers == default_worker_count()
        assert settings.workers >= 2

    def test_environment_variables_use_watch_prefix(self, env_dirs, monkeypatch):
        monkeypatch.setenv("WATCH_WORKERS", "6")
        monkeypatch.setenv("WATCH_QUEUE_CAPACITY", "12")
        monkeypatch.setenv("WATCH_STABILITY_INTERVAL_MS", "500")

        config = load_settings().to_intake_config()

        assert config.worker_count == 6
        assert config.queue_capacity == 12
        assert config.stability.interval_seconds == 0.5
        assert config.directories.incoming == env_dirs / "incoming"

    def test_extensions_are_normalised(self, env_dirs):
        settings = load_settings(accepted_extensions=" PDF, .Tif ,, ")

        assert settings.extension_list == (".pdf", ".tif")

    def test_relative_directories_become_absolute(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        config = load_settings().to_intake_config()

        assert config.directories.incoming == tmp_path / "incoming"
        assert all(path.is_absolute() for _, path in config.directories)


class TestConfigurationValidation:
    def test_overlapping_directories_rejected(self, env_dirs, monkeypatch):
        monkeypatch.setenv("WATCH_FAILED_DIR", str(env_dirs / "finished"))

        with pytest.raises(ConfigurationError, match="same location"):
            load_settings().to_intake_config()

    def test_same_directory_through_different_spelling_rejected(self, env_dirs, monkeypatch):
        monkeypatch.setenv("WATCH_PROCESSING_DIR", str(env_dirs / "incoming" / ".." / "incoming"))

        with pytest.raises(ConfigurationError):
            load_settings().to_intake_config()

    @pytest.mark.parametrize(
        "field", ["workers", "queue_capacity", "poll_timeout_ms", "stability_max_attempts"]
    )
    def test_non_positive_values_rejected(self, env_dirs, field):
        with pytest.raises(ConfigurationError, match=field):
            load_settings(**{field: 0}).to_intake_config()

    def test_empty_extension_list_rejected(self, env_dirs):
        with pytest.raises(ConfigurationError, match="accepted_extensions"):
            load_settings(accepted_extensions=" , ").to_intake_config()


class TestHostSettingsFile:
    def test_host_file_created_from_base_file(self, tmp_path):
        (tmp_path / "settings.env").write_text("WATCH_WORKERS=3\n", encoding="utf-8")

        chosen = Path(get_hostname_settings_file(tmp_path))

        assert chosen.name == f"{get_hostname()}-settings.env"
        content = chosen.read_text(encoding="utf-8")
        assert content.startswith("# Intake settings for host:")
        assert "WATCH_WORKERS=3" in content

    def test_existing_host_file_is_preferred(self, tmp_path):
        (tmp_path / "settings.env").write_text("WATCH_WORKERS=3\n", encoding="utf-8")
        host_file = tmp_path / f"{get_hostname()}-settings.env"
        host_file.write_text("WATCH_WORKERS=8\n", encoding="utf-8")

        assert get_hostname_settings_file(tmp_path) == str(host_file)
        assert host_file.read_text(encoding="utf-8") == "WATCH_WORKERS=8\n"

    def test_without_any_file_base_name_is_returned(self, tmp_path):
        assert get_hostname_settings_file(tmp_path) == str(tmp_path / "settings.env")
