"""
Settings tests
"""

from config import Settings, reload_settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MONEYMAP_DATABASE_URL", raising=False)
        settings = Settings(_env_file=None)
        assert settings.database_url == "sqlite:///moneymap.db"
        assert settings.is_sqlite
        assert not settings.is_in_memory

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MONEYMAP_DATABASE_URL", "sqlite://")
        monkeypatch.setenv("MONEYMAP_LOG_LEVEL", "DEBUG")
        settings = reload_settings()
        assert settings.is_in_memory
        assert settings.log_level == "DEBUG"
        monkeypatch.delenv("MONEYMAP_DATABASE_URL")
        monkeypatch.delenv("MONEYMAP_LOG_LEVEL")
        reload_settings()
