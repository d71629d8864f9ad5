import os


class Settings:
    def __init__(self):
        self.app_name = "Rentbook Billing"
        self.api_version = "1.0.0"
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.secret_key = os.getenv("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = 30
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./rentbook.db")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        # Which extension states let due_date_extension_days move the effective due date.
        self.extension_policy = os.getenv("EXTENSION_POLICY", "approved_or_none")
        self.extension_request_cutoff_days = 14
        self.default_due_days_offset = 7


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
