import os


class BaseConfig:
    """Base configuration for NapLog."""

    SECRET_KEY = os.environ.get("NAPLOG_SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "NAPLOG_DATABASE_URI",
        "sqlite:///naplog.db",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("NAPLOG_LOG_LEVEL", "INFO")

    # How often clients should re-request labels so "min ago" stays fresh.
    LABEL_REFRESH_SECONDS = 30


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.environ.get("NAPLOG_LOG_LEVEL", "DEBUG")


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(name=None):
    """Return the config class for ``name``, falling back to FLASK_ENV."""
    env = (name or os.environ.get("FLASK_ENV", "development")).lower()
    return config_by_name.get(env, DevelopmentConfig)
