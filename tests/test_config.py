"""
Tests for settings loading
"""

from gemitalk.config import Settings, get_database_path


class TestSettings:
    """Test Settings class"""

    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "LOG_LEVEL", "WEAKNESS_THRESHOLD", "LEITNER_MAX_BOX"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite:///data/gemitalk.db"
        assert settings.log_level == "INFO"
        assert settings.weakness_threshold == 70
        assert settings.leitner_max_box == 5
        assert settings.lesson_base_xp == 100
        assert settings.review_success_xp == 5
        assert settings.default_weekly_goal == 150
        assert settings.pronunciation_alignment == "positional"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("WEAKNESS_THRESHOLD", "60")
        monkeypatch.setenv("PRONUNCIATION_ALIGNMENT", "sequence")

        settings = Settings(_env_file=None)

        assert settings.weakness_threshold == 60
        assert settings.pronunciation_alignment == "sequence"

    def test_field_names_accepted(self):
        settings = Settings(_env_file=None, lock_timeout_seconds=2.5)

        assert settings.lock_timeout_seconds == 2.5


class TestDatabasePath:
    def test_sqlite_url(self):
        assert get_database_path("sqlite:///tmp/test.db") == "tmp/test.db"

    def test_other_url_falls_back(self):
        assert get_database_path("postgres://db") == "data/gemitalk.db"
