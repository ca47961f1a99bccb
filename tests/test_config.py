# tests/test_config.py
"""Settings defaults."""

from sqlalchemy.engine import make_url
from app.config import Settings


class TestSettingsDefaults:
    def test_default_database_url_names_the_installed_driver(self):
        url = make_url(Settings.model_fields["DATABASE_URL"].default)
        assert url.drivername == "postgresql+psycopg2"
        assert url.database == "firewatch_db"

    def test_alert_window_defaults(self):
        fields = Settings.model_fields
        assert fields["ALERT_WINDOW_MINUTES"].default == 60
        assert fields["ALERT_REUSE_CLOSED_IN_WINDOW"].default is False
