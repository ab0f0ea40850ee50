from loguru import logger

from homesphere.config import Settings
from homesphere.utils.logger import configure_logging


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("HOMESPHERE_LOG_LEVEL", "debug")
    monkeypatch.setenv("HOMESPHERE_SCENE_WORKERS", "4")
    monkeypatch.setenv("HOMESPHERE_SEED_DEMO", "yes")
    settings = Settings.from_env()
    assert settings.database_url == "sqlite://"
    assert settings.log_level == "DEBUG"
    assert settings.scene_workers == 4
    assert settings.seed_demo is True


def test_settings_defaults(monkeypatch):
    for key in ("DATABASE_URL", "HOMESPHERE_LOG_LEVEL", "HOMESPHERE_SCENE_WORKERS", "HOMESPHERE_SEED_DEMO"):
        monkeypatch.delenv(key, raising=False)
    settings = Settings.from_env()
    assert settings.database_url == "sqlite:///./data/homesphere.db"
    assert settings.scene_workers == 0
    assert settings.seed_demo is False


def test_configure_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    sink_id = configure_logging(str(log_file), "INFO")
    try:
        logger.info("hello from the test")
        logger.complete()
        assert "hello from the test" in log_file.read_text()
    finally:
        logger.remove(sink_id)
