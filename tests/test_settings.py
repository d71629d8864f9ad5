from backend.app.core.settings import get_settings


def test_settings_defaults():
    settings = get_settings()
    assert settings.app_name == "Rentbook Billing"
    assert isinstance(settings.secret_key, str) and settings.secret_key
    assert isinstance(settings.database_url, str) and settings.database_url
    assert settings.extension_request_cutoff_days == 14
    assert settings.default_due_days_offset == 7


def test_settings_is_singleton():
    assert get_settings() is get_settings()
